"""
This module provides a unified client for interacting with different Large Language Model (LLM) providers,
supporting both cloud-based (Google Gemini) and local LLMs, plus an ordered fallback across them.
It abstracts the underlying API calls to provide a consistent interface for generating content.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import requests
from google import genai
from google.genai import types

from config import config
from utils.exceptions import LLMError


class AbstractLLMClient(ABC):
    """
    Abstract base class for LLM clients.
    Defines the common interface for generating content from an LLM.
    """
    name = "abstract"

    @abstractmethod
    def generate_content(self, contents: list, generation_config: dict) -> str:
        """
        Generates content using the client's LLM.

        Args:
            contents (list): A list of content parts to send to the LLM (e.g., prompts).
            generation_config (dict): Configuration for content generation, such as temperature.

        Returns:
            str: The generated text.
        """
        pass


class CloudLLMClient(AbstractLLMClient):
    """
    LLM client for interacting with cloud-based Google Gemini models.
    """
    name = "gemini"

    def __init__(self, api_key: str, model_name: str):
        """
        Args:
            api_key (str): The API key for Google Gemini.
            model_name (str): The Gemini model to use (e.g., 'gemini-2.0-flash').
        """
        self.client = genai.Client(api_key=api_key)
        self.model_name = model_name

    def generate_content(self, contents: list, generation_config: dict) -> str:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=contents,
            config=types.GenerateContentConfig(temperature=generation_config.get("temperature", 0.7)),
        )
        return response.text or ""


class LocalLLMClient(AbstractLLMClient):
    """
    LLM client for interacting with local LLM endpoints (e.g., Ollama).
    """
    name = "local"

    def __init__(self, endpoint: str, model_name: str, timeout: int = 120):
        """
        Args:
            endpoint (str): The URL of the local LLM API endpoint.
            model_name (str): The name of the local LLM model to use.
            timeout (int): Request timeout in seconds.
        """
        self.endpoint = str(endpoint).rstrip("/")
        self.model_name = model_name
        self.timeout = timeout

    def generate_content(self, contents: list, generation_config: dict) -> str:
        """
        Generates content using a local LLM by making an HTTP POST request to the local endpoint.

        Raises:
            LLMError: If the local LLM API call fails.
        """
        try:
            headers = {"Content-Type": "application/json"}
            data = {
                "model": self.model_name,
                "messages": [{"role": "user", "content": contents[0]}],
                "options": {"temperature": generation_config.get("temperature", 0.7)},
                "stream": False
            }
            response = requests.post(f"{self.endpoint}/api/chat", headers=headers, json=data, timeout=self.timeout)
            response.raise_for_status()
            return response.json()["message"]["content"]
        except requests.exceptions.RequestException as e:
            raise LLMError(f"Local LLM API call failed: {e}") from e
        except (KeyError, ValueError) as e:
            raise LLMError(f"Local LLM returned an unexpected response: {e}") from e


class FallbackLLMClient(AbstractLLMClient):
    """
    Tries each client in order and returns the first successful answer.
    """
    name = "fallback"

    def __init__(self, clients: List[AbstractLLMClient]):
        if not clients:
            raise LLMError("FallbackLLMClient needs at least one client.")
        self.clients = clients

    def generate_content(self, contents: list, generation_config: dict) -> str:
        failures = []
        for client in self.clients:
            try:
                return client.generate_content(contents, generation_config)
            except Exception as e:
                logging.warning(f"LLM provider '{client.name}' failed, trying next: {e}")
                failures.append(f"{client.name}: {e}")
        raise LLMError(f"All LLM providers failed: {'; '.join(failures)}")


def get_llm_client() -> AbstractLLMClient:
    """
    Factory function to get the appropriate LLM client based on the 'LLM_PROVIDER' setting.

    Returns:
        AbstractLLMClient: A Gemini, local, or fallback (Gemini first, then local) client.

    Raises:
        LLMError: If 'GEMINI_API_KEY' is missing for the cloud provider.
    """
    local = LocalLLMClient(config.local_llm_endpoint, config.local_model_name)
    if config.llm_provider == "local":
        logging.info(f"Using Local LLM provider with endpoint: {config.local_llm_endpoint}")
        return local

    if not config.gemini_api_key:
        if config.llm_provider == "fallback":
            logging.warning("GEMINI_API_KEY is not set; fallback chain only has the local provider.")
            return FallbackLLMClient([local])
        raise LLMError("GEMINI_API_KEY is not set for 'cloud' LLM_PROVIDER.")

    cloud = CloudLLMClient(config.gemini_api_key, config.cloud_model_name)
    if config.llm_provider == "fallback":
        logging.info("Using Gemini with local LLM fallback.")
        return FallbackLLMClient([cloud, local])
    logging.info("Using Google Gemini (Cloud) LLM provider.")
    return cloud


def call_llm(client: AbstractLLMClient, prompt: str, temperature: Optional[float] = None) -> str:
    """
    Calls an LLM client to generate content based on a prompt.

    Args:
        client (AbstractLLMClient): The client to use.
        prompt (str): The input prompt for the LLM.
        temperature (Optional[float]): Generation temperature; defaults to the configured one.

    Returns:
        str: The generated text content from the LLM.

    Raises:
        LLMError: If the LLM call fails for any reason.
    """
    if temperature is None:
        temperature = config.gemini_temperature
    try:
        result = client.generate_content(contents=[prompt], generation_config={"temperature": temperature})
    except LLMError:
        raise
    except Exception as e:
        raise LLMError(f"Failed to call LLM: {e}") from e
    return (result or "").strip()
