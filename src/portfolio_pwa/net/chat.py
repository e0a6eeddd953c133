"""
Chat proxy forwarding visitor questions to the Gemini generateContent API
"""

from typing import Any, Dict, List, Optional

from ..utils.errors import ConfigurationError, PortfolioPWAError, UpstreamError
from ..utils.logging_config import get_logger
from ..utils.validation import SecurityValidator
from .backoff import BackoffClient

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class ChatProxy:
    """Relays one chat turn to the LLM API and shapes a client-safe reply"""

    FALLBACK_MESSAGE = (
        "I apologize, but I'm currently unable to process your request. "
        "Please try again later or use the contact form."
    )
    BLOCKED_MESSAGE = "I cannot respond to that. Please ask about the portfolio."

    def __init__(self,
                 client: BackoffClient,
                 api_key: str,
                 system_prompt: str = '',
                 model: str = 'gemini-2.5-flash',
                 development: bool = False,
                 temperature: float = 0.7,
                 max_output_tokens: int = 512):
        """
        Initialize chat proxy

        Args:
            client: Backoff client used for the upstream call
            api_key: Gemini API key
            system_prompt: System instruction sent with every turn
            model: Gemini model name
            development: Include sanitized error detail in failure replies
            temperature: Sampling temperature
            max_output_tokens: Upper bound on reply length
        """
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is required for the chat proxy")

        self.client = client
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.model = model
        self.development = development
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.logger = get_logger(__name__)

    @property
    def api_url(self) -> str:
        return GEMINI_API_URL.format(model=self.model)

    def build_payload(self, message: str, history: List[Dict[str, str]]) -> Dict[str, Any]:
        contents = [
            {
                'role': 'model' if item['role'] in ('bot', 'model') else 'user',
                'parts': [{'text': item['content']}]
            }
            for item in history
        ]
        contents.append({'role': 'user', 'parts': [{'text': message}]})

        payload = {
            'contents': contents,
            'generationConfig': {
                'temperature': self.temperature,
                'maxOutputTokens': self.max_output_tokens
            }
        }
        if self.system_prompt:
            payload['systemInstruction'] = {'parts': [{'text': self.system_prompt}]}
        return payload

    async def reply(self, message: Any, history: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        Answer one chat message

        Args:
            message: Visitor message
            history: Earlier turns as {'role': 'user'|'bot', 'content': str}

        Returns:
            {'success': bool, 'message': str} plus 'detail' in development

        Raises:
            ValidationError: If the message or history is malformed
        """
        text = SecurityValidator.validate_chat_message(message)
        turns = SecurityValidator.validate_history(history)
        payload = self.build_payload(text, turns)

        try:
            response = await self.client.call(self.api_url, {
                'method': 'POST',
                'headers': {'x-goog-api-key': self.api_key},
                'json': payload
            })

            if not response.ok:
                raise UpstreamError(f"API call failed with status: {response.status}", response.status)

            try:
                result = response.json()
            except (ValueError, UnicodeDecodeError) as e:
                raise UpstreamError(f"Invalid JSON response: {e}")

            if not isinstance(result, dict):
                raise UpstreamError("Invalid response structure from AI API")

            if (result.get('promptFeedback') or {}).get('blockReason'):
                self.logger.warning("Chat prompt blocked by upstream safety filter")
                return {'success': False, 'message': self.BLOCKED_MESSAGE}

            return {'success': True, 'message': self._extract_text(result)}

        except PortfolioPWAError as e:
            self.logger.error(f"Chat request failed: {e}")
            return self._failure_reply(e)

    def _extract_text(self, result: Dict[str, Any]) -> str:
        try:
            text = result['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError):
            raise UpstreamError(
                "Invalid response structure from AI API",
                details={'keys': sorted(result.keys()) if isinstance(result, dict) else []}
            )
        if not isinstance(text, str) or not text:
            raise UpstreamError("Empty reply from AI API")
        return text

    def _failure_reply(self, error: Exception) -> Dict[str, Any]:
        reply = {'success': False, 'message': self.FALLBACK_MESSAGE}
        if self.development:
            reply['detail'] = SecurityValidator.sanitize_error_message(str(error))
        return reply

