"""Answer and meeting brief generation using LiteLLM."""

import os
from typing import Dict, List, Optional

from litellm import acompletion
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import LLMError
from knowledge_assistant.models.chunk import ChunkMatch
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("answer_service")

NO_DOCUMENTS_ANSWER = "I couldn't find any relevant documents matching your query."
ANSWER_FALLBACK = "I couldn't generate an answer at this time."
BRIEF_FALLBACK = "Unable to generate brief at this time."
NO_DOCUMENTS_CONTEXT = "No relevant documents found."

CONTEXT_SEPARATOR = "\n\n---\n\n"

SEARCH_SYSTEM_PROMPT = (
    "You are a helpful document search assistant for Product Managers. "
    "Answer the user's question based ONLY on the provided document chunks. "
    "If the information is not in the chunks, say 'I couldn't find this in your documents.' "
    "Always cite which document each piece of information comes from. "
    "Be concise and direct."
)

BRIEF_SYSTEM_PROMPT = (
    "You are a meeting preparation assistant for Product Managers. "
    "Generate a concise meeting brief based on the meeting details and relevant documents provided. "
    "Include: 1) Meeting overview (title, time, attendees), "
    "2) Likely discussion topics based on the meeting title and recent documents, "
    "3) Key context from relevant documents that the PM should review before the meeting. "
    "If no relevant documents are found, suggest what topics might come up based on the "
    "meeting title and attendees. Be concise and actionable."
)


def build_context(matches: List[ChunkMatch]) -> str:
    """Ranked chunks as one prompt block, each labelled with its document title."""
    return CONTEXT_SEPARATOR.join(
        f"[Document: {m.document_title}]\n{m.chunk_text}" for m in matches
    )


class AnswerService:
    """Synthesizes grounded answers and meeting briefs from retrieved chunks.

    Generation failures never propagate: callers always get text back, a
    fixed fallback message when the model cannot be reached.
    """

    def __init__(self):
        """Initialize the service with configuration."""
        self.settings = get_settings()
        self._configure_litellm_environment()

    def _configure_litellm_environment(self) -> None:
        """LiteLLM reads provider API keys from environment variables."""
        if self.settings.llm.anthropic_api_key:
            os.environ["ANTHROPIC_API_KEY"] = self.settings.llm.anthropic_api_key
        if self.settings.llm.openai_api_key:
            os.environ["OPENAI_API_KEY"] = self.settings.llm.openai_api_key

    async def _call_llm(self, model: str, messages: List[Dict[str, str]], max_tokens: int) -> str:
        """Call the model through LiteLLM and return the message content.

        Raises:
            LLMError: If the call fails or returns no content
        """
        try:
            response = await acompletion(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=self.settings.llm.temperature,
                timeout=self.settings.llm.timeout,
                num_retries=0,
            )
        except Exception as e:
            raise LLMError(f"LLM call failed: {e}", model=model) from e

        content = _message_content(response)
        if not content:
            raise LLMError("LLM returned empty content", model=model)
        return content

    async def _generate(
        self, model: str, messages: List[Dict[str, str]], max_tokens: int
    ) -> Optional[str]:
        try:
            async for attempt in AsyncRetrying(
                reraise=True,
                stop=stop_after_attempt(self.settings.llm.max_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                retry=retry_if_exception_type(LLMError),
            ):
                with attempt:
                    return await self._call_llm(model, messages, max_tokens)
        except LLMError as e:
            logger.error(f"Generation failed with {model}: {e.message}")
        return None

    async def synthesize(self, query: str, matches: List[ChunkMatch]) -> str:
        """
        Answer ``query`` from the retrieved chunks only.

        Args:
            query: User question
            matches: Ranked chunks

        Returns:
            Answer text, or a fixed message when nothing was retrieved or
            generation failed
        """
        if not matches:
            return NO_DOCUMENTS_ANSWER

        context = build_context(matches)
        messages = [
            {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f'Based on the following document chunks, answer this question: "{query}"\n\n{context}',
            },
        ]
        logger.info(f"Synthesizing answer from {len(matches)} chunks")
        answer = await self._generate(
            self.settings.llm.search_model, messages, self.settings.llm.search_max_tokens
        )
        return answer or ANSWER_FALLBACK

    async def generate_brief(self, meeting_context: str, matches: List[ChunkMatch]) -> str:
        """Write a meeting brief from the meeting details and related chunks."""
        docs_context = build_context(matches) if matches else NO_DOCUMENTS_CONTEXT
        messages = [
            {"role": "system", "content": BRIEF_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Generate a meeting brief for the following meeting:\n\n{meeting_context}"
                    f"\n\nRelevant documents:\n\n{docs_context}"
                ),
            },
        ]
        logger.info(f"Generating meeting brief from {len(matches)} chunks")
        brief = await self._generate(
            self.settings.llm.brief_model, messages, self.settings.llm.brief_max_tokens
        )
        return brief or BRIEF_FALLBACK


def _message_content(response) -> Optional[str]:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        return None
    if content is None:
        return None
    return content.strip() or None
