from types import SimpleNamespace

import pytest
import requests

from prdigest import llm_client


#============================================
def make_response(status_code: int, payload: dict | None = None, text: str = ""):
	return SimpleNamespace(
		status_code=status_code,
		text=text,
		json=lambda: payload or {},
	)


#============================================
def make_transport(monkeypatch, responses: list) -> llm_client.OllamaTransport:
	"""
	Transport whose session replays the given responses or exceptions.
	"""
	monkeypatch.setattr(llm_client.time, "sleep", lambda seconds: None)
	transport = llm_client.OllamaTransport(
		model="qwen3:8b",
		system_message="system text",
		max_retries=2,
	)
	sent = []

	def fake_post(endpoint, json, timeout):
		sent.append(json)
		item = responses.pop(0)
		if isinstance(item, Exception):
			raise item
		return item

	transport.session = SimpleNamespace(post=fake_post)
	transport.sent = sent
	return transport


#============================================
def test_generate_returns_message_content(monkeypatch) -> None:
	"""
	System and user messages are sent; the assistant text comes back.
	"""
	transport = make_transport(
		monkeypatch, [make_response(200, {"message": {"content": "#### 概要\n- ok"}})]
	)
	text = transport.generate("prompt", purpose="unit", max_tokens=64)
	assert text == "#### 概要\n- ok"
	payload = transport.sent[0]
	assert payload["messages"][0] == {"role": "system", "content": "system text"}
	assert payload["messages"][1] == {"role": "user", "content": "prompt"}
	assert payload["options"]["num_predict"] == 64


#============================================
def test_server_errors_are_retried(monkeypatch) -> None:
	transport = make_transport(
		monkeypatch,
		[
			make_response(503),
			requests.Timeout("slow"),
			make_response(200, {"message": {"content": "done"}}),
		],
	)
	assert transport.generate("p", purpose="unit", max_tokens=8) == "done"
	assert len(transport.sent) == 3


#============================================
def test_rate_limit_and_bad_request(monkeypatch) -> None:
	"""
	429 and 400 map to their own error types without retries.
	"""
	transport = make_transport(monkeypatch, [make_response(429)])
	with pytest.raises(llm_client.LLMRateLimitError):
		transport.generate("p", purpose="unit", max_tokens=8)
	transport = make_transport(monkeypatch, [make_response(400, text="too long")])
	with pytest.raises(llm_client.LLMRequestError):
		transport.generate("p", purpose="unit", max_tokens=8)


#============================================
def test_unreachable_server(monkeypatch) -> None:
	transport = make_transport(monkeypatch, [requests.ConnectionError("down")] * 3)
	with pytest.raises(llm_client.TransportUnavailableError):
		transport.generate("p", purpose="unit", max_tokens=8)


#============================================
def test_empty_content_raises(monkeypatch) -> None:
	transport = make_transport(monkeypatch, [make_response(200, {"message": {"content": ""}})])
	with pytest.raises(RuntimeError):
		transport.generate("p", purpose="unit", max_tokens=8)


#============================================
def test_client_falls_through_unavailable_transport() -> None:
	"""
	An unavailable transport is skipped and logged.
	"""
	messages = []

	def down(prompt, *, purpose, max_tokens):
		raise llm_client.TransportUnavailableError("down")

	first = SimpleNamespace(name="first", generate=down)
	second = SimpleNamespace(
		name="second",
		generate=lambda prompt, *, purpose, max_tokens: f"answer to {prompt}",
	)
	client = llm_client.LLMClient([first, second], log_fn=messages.append)
	assert client.generate("q", purpose="unit", max_tokens=8) == "answer to q"
	assert messages == ["first unavailable for unit: down"]


#============================================
def test_create_llm_client_requires_model() -> None:
	with pytest.raises(RuntimeError):
		llm_client.create_llm_client(model="", base_url="http://localhost:11434", system_message="")
