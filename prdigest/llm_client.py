"""
LLM transports used to summarize pull requests.
"""

# Standard Library
import random
import time
import urllib.parse

# PIP3 modules
import requests


#============================================
class TransportUnavailableError(RuntimeError):
	"""
	Raised when a transport cannot be reached at all.
	"""


#============================================
class LLMRateLimitError(RuntimeError):
	"""
	Raised when the model server rejects requests for rate limiting.
	"""


#============================================
class LLMRequestError(RuntimeError):
	"""
	Raised when the model server refuses a request (HTTP 400).
	"""


#============================================
class OllamaTransport:
	name = "Ollama"

	def __init__(
		self,
		model: str,
		base_url: str = "http://localhost:11434",
		system_message: str = "",
		timeout_seconds: int = 300,
		max_retries: int = 3,
		backoff_base: float = 2.0,
	) -> None:
		self.model = model
		self.base_url = base_url.rstrip("/")
		self.system_message = system_message
		self.timeout_seconds = int(timeout_seconds)
		self.max_retries = int(max_retries)
		self.backoff_base = float(backoff_base)
		self.session = requests.Session()

	def _validated_chat_endpoint(self) -> str:
		"""
		Build and validate the Ollama chat endpoint URL.
		"""
		parsed = urllib.parse.urlparse(self.base_url)
		if parsed.scheme not in {"http", "https"}:
			raise TransportUnavailableError("Ollama base_url must use http or https.")
		if not parsed.netloc:
			raise TransportUnavailableError("Ollama base_url must include a host.")
		return self.base_url + "/api/chat"

	def _build_messages(self, prompt: str) -> list[dict[str, str]]:
		messages: list[dict[str, str]] = []
		if self.system_message:
			messages.append({"role": "system", "content": self.system_message})
		messages.append({"role": "user", "content": prompt})
		return messages

	def _post_chat(self, payload: dict) -> requests.Response:
		"""
		POST one chat request, retrying connection failures and 5xx.
		"""
		endpoint = self._validated_chat_endpoint()
		last_error = None
		for attempt in range(self.max_retries + 1):
			if attempt:
				time.sleep(self.backoff_base ** attempt + random.random())
			try:
				response = self.session.post(endpoint, json=payload, timeout=self.timeout_seconds)
			except (requests.ConnectionError, requests.Timeout) as error:
				last_error = error
				continue
			if response.status_code >= 500:
				last_error = RuntimeError(f"Ollama chat error: status {response.status_code}")
				continue
			return response
		if isinstance(last_error, requests.ConnectionError):
			raise TransportUnavailableError("Ollama is unreachable.") from last_error
		raise RuntimeError(
			f"Ollama chat failed after {self.max_retries + 1} attempts: {last_error}"
		) from last_error

	def generate(self, prompt: str, *, purpose: str, max_tokens: int) -> str:
		payload: dict[str, object] = {
			"model": self.model,
			"messages": self._build_messages(prompt),
			"stream": False,
			"options": {"num_predict": max_tokens},
		}
		response = self._post_chat(payload)
		if response.status_code == 429:
			raise LLMRateLimitError(f"Ollama rate limit exceeded ({purpose}).")
		if response.status_code == 400:
			raise LLMRequestError(f"Ollama rejected the request ({purpose}): {response.text}")
		if response.status_code >= 400:
			raise RuntimeError(f"Ollama chat error: status {response.status_code}")
		parsed = response.json()
		assistant_message = (parsed.get("message") or {}).get("content", "")
		if not assistant_message:
			raise RuntimeError("Ollama chat returned empty content")
		return assistant_message


#============================================
class LLMClient:
	"""
	Try transports in order until one answers.
	"""

	def __init__(self, transports: list, log_fn=None) -> None:
		if not transports:
			raise RuntimeError("LLMClient needs at least one transport.")
		self.transports = list(transports)
		self.log_fn = log_fn

	def generate(self, prompt: str, *, purpose: str, max_tokens: int) -> str:
		last_error = None
		for transport in self.transports:
			try:
				return transport.generate(prompt, purpose=purpose, max_tokens=max_tokens)
			except TransportUnavailableError as error:
				last_error = error
				if self.log_fn is not None:
					self.log_fn(f"{transport.name} unavailable for {purpose}: {error}")
		raise TransportUnavailableError(
			f"No LLM transport available for {purpose}."
		) from last_error


#============================================
def create_llm_client(
	model: str,
	base_url: str,
	system_message: str,
	timeout_seconds: int = 300,
	max_retries: int = 3,
	log_fn=None,
) -> LLMClient:
	"""
	Build the LLMClient used by the digest pipeline.
	"""
	if not model:
		raise RuntimeError(
			"No LLM model configured. Set llm.providers.ollama.model in settings.yaml."
		)
	transport = OllamaTransport(
		model=model,
		base_url=base_url,
		system_message=system_message,
		timeout_seconds=timeout_seconds,
		max_retries=max_retries,
	)
	return LLMClient(transports=[transport], log_fn=log_fn)
