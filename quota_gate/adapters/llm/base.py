from abc import ABC, abstractmethod


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that turn a prompt into a text reply."""

	#: Whether replies are canned demo output rather than model output.
	is_demo: bool = False

	@abstractmethod
	async def generate_text(
		self,
		prompt: str,
		*,
		model: str | None = None,
		max_tokens: int | None = None,
		temperature: float | None = None,
	) -> str:
		"""Generate a text reply from the model.

		Args:
			prompt: User prompt to send to the model.
			model: Model to use; the client's default when omitted.
			max_tokens: Upper bound on generated tokens.
			temperature: Sampling temperature.

		Returns:
			str: The model's reply.

		Raises:
			LLMAppError: If the provider call fails.
		"""
		...
