"""LangChain chat models on OpenRouter: streaming assistant replies and the structured quick analysis."""
import logging
from collections.abc import AsyncIterator

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from crackcheck.constants import CHAT_MODELS, DEFAULT_ANALYSIS_MODEL
from crackcheck.core.config import settings
from crackcheck.schemas.analysis import DetailedAnalysis

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

SYSTEM_PROMPT = """You are a specialized assistant for structural crack analysis and building safety assessment.

Your expertise includes:
- Structural engineering and crack detection
- Building safety assessment
- Repair material recommendations
- DIY vs professional repair guidance

Guidelines:
- Provide helpful, accurate information about crack analysis and repair
- Emphasize safety first and recommend professional consultation for serious structural issues
- Be supportive for DIY repairs of low/moderate severity cracks
- Maintain a professional but approachable tone
- Focus on practical, actionable advice

Never introduce yourself by name in responses - users already know who they're talking to."""

QUICK_ANALYSIS_PROMPT = """Analyze the crack(s) in the attached photo(s) as a structural engineer.
Count the visible cracks, classify each one with its severity and location, give practical
recommendations and a short note for the homeowner. Report your confidence from 0 to 100.
{context}"""


def _chat_model(model_id: str, temperature: float = 0.7, streaming: bool = False) -> ChatOpenAI:
    return ChatOpenAI(
        model=model_id,
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        temperature=temperature,
        streaming=streaming,
        default_headers={
            "HTTP-Referer": settings.openrouter_site_url,
            "X-Title": settings.openrouter_app_title,
        },
    )


def build_chat_messages(message: str, history: list[tuple[str, str]] | None = None) -> list[BaseMessage]:
    """history: (message_type, content) pairs, oldest first."""
    messages: list[BaseMessage] = [SystemMessage(content=SYSTEM_PROMPT)]
    for message_type, content in (history or [])[-HISTORY_LIMIT:]:
        if not content:
            continue
        if message_type == "assistant":
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    messages.append(HumanMessage(content=message))
    return messages


async def stream_chat_reply(
    message: str,
    model: str,
    history: list[tuple[str, str]] | None = None,
) -> AsyncIterator[str]:
    """Yields text chunks of the assistant reply. `model` is a CHAT_MODELS alias."""
    llm = _chat_model(CHAT_MODELS[model], streaming=True)
    async for chunk in llm.astream(build_chat_messages(message, history)):
        content = chunk.content if hasattr(chunk, "content") else str(chunk)
        if content:
            yield content


def quick_analysis(image_urls: list[str], description: str | None = None) -> DetailedAnalysis:
    llm = _chat_model(DEFAULT_ANALYSIS_MODEL, temperature=0.1).with_structured_output(DetailedAnalysis)
    context = f'User description: "{description}"' if description else ""
    content: list[dict] = [{"type": "text", "text": QUICK_ANALYSIS_PROMPT.format(context=context)}]
    content.extend({"type": "image_url", "image_url": {"url": url}} for url in image_urls)
    result = llm.invoke([HumanMessage(content=content)])
    logger.info("Quick analysis: %s crack(s), risk=%s", result.crackCount, result.riskLevel)
    return result
