"""
Tests for the backend adapters with mocked HTTP sessions and SDK clients.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests

from scia.llm import (
    GenerationRequest,
    GenerationTimeout,
    InvalidModel,
    InvalidResponse,
    ProviderError,
    RequestContext,
)
from scia.llm.anthropic_provider import AnthropicProvider
from scia.llm.gemini import GeminiProvider
from scia.llm.huggingface import HuggingFaceProvider
from scia.llm.local import LocalProvider
from scia.llm.ollama import OllamaProvider
from scia.llm.openai_provider import OpenAIProvider
from scia.log import null_logger


def http_response(status=200, payload=None, text=""):
    response = Mock()
    response.status_code = status
    response.json.return_value = payload
    response.text = text
    return response


def make_session(response=None, error=None):
    session = Mock(spec=requests.Session)
    if error is not None:
        session.request.side_effect = error
        session.get.side_effect = error
    else:
        session.request.return_value = response
        session.get.return_value = response
    return session


CTX = RequestContext.background()


class TestOllamaProvider:
    """Test the Ollama REST adapter."""

    def test_generate_payload_and_response(self):
        session = make_session(http_response(payload={
            "response": "STRATEGY: vm", "model": "qwen2.5-coder:7b",
            "prompt_eval_count": 10, "eval_count": 5,
        }))
        provider = OllamaProvider(session=session, logger=null_logger())

        response = provider.generate(CTX, GenerationRequest(prompt="hi", temperature=0.1, max_tokens=50, top_k=40))

        assert response.text == "STRATEGY: vm"
        assert response.tokens_prompt == 10
        assert response.tokens_total == 15
        method, url = session.request.call_args[0]
        payload = session.request.call_args[1]["json"]
        assert method == "POST"
        assert url == "http://localhost:11434/api/generate"
        assert payload["stream"] is False
        assert payload["options"] == {"temperature": 0.1, "num_predict": 50, "top_k": 40}

    def test_invalid_url_rejected(self):
        with pytest.raises(ProviderError):
            OllamaProvider(base_url="localhost:11434")

    def test_missing_model_is_invalid_model(self):
        session = make_session(http_response(status=404, text="model not found"))
        provider = OllamaProvider(session=session)
        with pytest.raises(InvalidModel):
            provider.generate(CTX, GenerationRequest(prompt="hi"))

    def test_server_error(self):
        session = make_session(http_response(status=500, text="boom"))
        provider = OllamaProvider(session=session)
        with pytest.raises(ProviderError, match="status 500"):
            provider.generate(CTX, GenerationRequest(prompt="hi"))

    def test_transport_timeout(self):
        provider = OllamaProvider(session=make_session(error=requests.Timeout("slow")))
        with pytest.raises(GenerationTimeout):
            provider.generate(CTX, GenerationRequest(prompt="hi"))

    def test_missing_response_field(self):
        provider = OllamaProvider(session=make_session(http_response(payload={"done": True})))
        with pytest.raises(InvalidResponse):
            provider.generate(CTX, GenerationRequest(prompt="hi"))

    def test_is_available(self):
        assert OllamaProvider(session=make_session(http_response())).is_available(CTX)
        assert not OllamaProvider(session=make_session(error=requests.ConnectionError())).is_available(CTX)

    def test_list_models(self):
        session = make_session(http_response(payload={"models": [{"name": "qwen2.5-coder:7b"}, {}]}))
        models = OllamaProvider(session=session).list_models(CTX)
        assert len(models) == 1
        assert models[0].size == "7b"
        assert models[0].type == "code"
        assert models[0].is_local


class TestOpenAIProvider:
    """Test the OpenAI SDK adapter."""

    def make_client(self, content="STRATEGY: kubernetes", error=None):
        client = Mock()
        if error is not None:
            client.chat.completions.create.side_effect = error
        else:
            client.chat.completions.create.return_value = SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
                model="gpt-4o",
                usage=SimpleNamespace(prompt_tokens=12, total_tokens=20),
            )
        return client

    def test_requires_key(self):
        with pytest.raises(ProviderError):
            OpenAIProvider(api_key="", client=Mock())

    def test_generate(self):
        client = self.make_client()
        provider = OpenAIProvider(api_key="sk-test", client=client)

        response = provider.generate(CTX, GenerationRequest(prompt="hi", system="be brief", max_tokens=200))

        assert response.text == "STRATEGY: kubernetes"
        assert response.tokens_total == 20
        kwargs = client.chat.completions.create.call_args[1]
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 200
        assert kwargs["messages"][0] == {"role": "system", "content": "be brief"}

    def test_native_error_wrapped(self):
        provider = OpenAIProvider(api_key="sk-test", client=self.make_client(error=RuntimeError("rate limited")))
        with pytest.raises(ProviderError) as exc:
            provider.generate(CTX, GenerationRequest(prompt="hi"))
        assert isinstance(exc.value.cause, RuntimeError)

    def test_timeout_error_mapped(self):
        class APITimeoutError(Exception):
            pass

        provider = OpenAIProvider(api_key="sk-test", client=self.make_client(error=APITimeoutError("slow")))
        with pytest.raises(GenerationTimeout):
            provider.generate(CTX, GenerationRequest(prompt="hi"))

    def test_empty_content(self):
        provider = OpenAIProvider(api_key="sk-test", client=self.make_client(content=""))
        with pytest.raises(InvalidResponse):
            provider.generate(CTX, GenerationRequest(prompt="hi"))

    def test_is_available(self):
        client = Mock()
        client.models.retrieve.side_effect = RuntimeError("unauthorized")
        assert not OpenAIProvider(api_key="sk-test", client=client).is_available(CTX)


class TestAnthropicProvider:
    """Test the Anthropic SDK adapter."""

    def test_generate_joins_text_blocks(self):
        client = Mock()
        client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="STRATEGY: vm\n"),
                     SimpleNamespace(type="text", text="REASON: simple")],
            model="claude-3-haiku-20240307",
            usage=SimpleNamespace(input_tokens=7, output_tokens=3),
        )
        provider = AnthropicProvider(api_key="key", client=client)

        response = provider.generate(CTX, GenerationRequest(prompt="hi", system="sys"))

        assert response.text == "STRATEGY: vm\nREASON: simple"
        assert response.tokens_total == 10
        assert client.messages.create.call_args[1]["system"] == "sys"

    def test_options_merged(self):
        client = Mock()
        client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="ok")], model=None, usage=None,
        )
        provider = AnthropicProvider(api_key="key", client=client)

        provider.generate(CTX, GenerationRequest(prompt="hi", options={"stop_sequences": ["END"]}))

        assert client.messages.create.call_args[1]["stop_sequences"] == ["END"]

    def test_requires_key(self):
        with pytest.raises(ProviderError):
            AnthropicProvider(api_key="", client=Mock())


    def test_error_wrapped(self):
        client = Mock()
        client.messages.create.side_effect = ValueError("overloaded")
        with pytest.raises(ProviderError):
            AnthropicProvider(api_key="key", client=client).generate(CTX, GenerationRequest(prompt="hi"))


class TestGeminiProvider:
    """Test the Gemini SDK adapter."""

    def test_generate(self):
        genai = Mock()
        genai.GenerativeModel.return_value.generate_content.return_value = SimpleNamespace(
            text="STRATEGY: serverless",
            usage_metadata=SimpleNamespace(prompt_token_count=4, total_token_count=9),
        )
        provider = GeminiProvider(api_key="key", client=genai)

        response = provider.generate(CTX, GenerationRequest(prompt="hi", temperature=0.1, max_tokens=300))

        assert response.text == "STRATEGY: serverless"
        assert response.model == "gemini-2.0-flash"
        assert response.tokens_total == 9
        genai.types.GenerationConfig.assert_called_once_with(temperature=0.1, max_output_tokens=300)

    def test_options_merged(self):
        genai = Mock()
        genai.GenerativeModel.return_value.generate_content.return_value = SimpleNamespace(
            text="ok", usage_metadata=None,
        )
        provider = GeminiProvider(api_key="key", client=genai)

        provider.generate(CTX, GenerationRequest(prompt="hi", temperature=0.2, max_tokens=0,
                                                 options={"candidate_count": 1}))

        genai.types.GenerationConfig.assert_called_once_with(temperature=0.2, candidate_count=1)

    def test_error_wrapped(self):
        genai = Mock()
        genai.GenerativeModel.side_effect = RuntimeError("quota")

        with pytest.raises(ProviderError):
            GeminiProvider(api_key="key", client=genai).generate(CTX, GenerationRequest(prompt="hi"))

    def test_requires_key(self):
        with pytest.raises(ProviderError):
            GeminiProvider(api_key="", client=Mock())


class TestHuggingFaceProvider:
    """Test the Hugging Face inference adapter."""

    def test_generate_list_payload(self):
        session = make_session(http_response(payload=[{"generated_text": "STRATEGY: vm"}]))
        provider = HuggingFaceProvider(api_token="hf_x", session=session)

        response = provider.generate(CTX, GenerationRequest(prompt="hi", system="sys"))

        assert response.text == "STRATEGY: vm"
        kwargs = session.request.call_args[1]
        assert kwargs["headers"]["Authorization"] == "Bearer hf_x"
        assert kwargs["json"]["inputs"] == "sys\n\nUser: hi"
        assert kwargs["json"]["parameters"]["return_full_text"] is False

    def test_generate_dict_payload(self):
        session = make_session(http_response(payload={"generated_text": "ok"}))
        assert HuggingFaceProvider(session=session).generate(CTX, GenerationRequest(prompt="hi")).text == "ok"

    def test_empty_payload(self):
        session = make_session(http_response(payload=[]))
        with pytest.raises(InvalidResponse):
            HuggingFaceProvider(session=session).generate(CTX, GenerationRequest(prompt="hi"))

    def test_unavailable_without_token(self):
        session = make_session(http_response())
        assert not HuggingFaceProvider(session=session).is_available(CTX)
        session.get.assert_not_called()


class TestLocalProvider:
    """Test the llama.cpp server adapter."""

    def test_missing_model_file(self, tmp_path):
        with pytest.raises(ProviderError):
            LocalProvider(model_path=str(tmp_path / "missing.gguf"))

    def test_generate(self, tmp_path):
        model = tmp_path / "mistral-7b-instruct.Q4_K_M.gguf"
        model.write_text("")
        session = make_session(http_response(payload={
            "content": "STRATEGY: vm", "tokens_evaluated": 3, "tokens_predicted": 8,
        }))
        provider = LocalProvider(model_path=str(model), session=session)

        response = provider.generate(CTX, GenerationRequest(prompt="hi", max_tokens=64))

        assert response.text == "STRATEGY: vm"
        assert response.model == model.name
        assert response.tokens_prompt == 3
        assert response.tokens_total == 11
        assert session.request.call_args[1]["json"]["n_predict"] == 64

    def test_list_models_tolerates_server_errors(self, tmp_path):
        model = tmp_path / "mistral-7b-instruct.Q4_K_M.gguf"
        model.write_text("")
        provider = LocalProvider(model_path=str(model), session=make_session(error=requests.ConnectionError()))

        models = provider.list_models(CTX)
        assert [m.name for m in models] == [model.name]
        assert models[0].size == "7b-Q4_K_M"
