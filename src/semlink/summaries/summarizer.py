"""Resource summarizer: generate summary text via LiteLLM.

The summarizer only produces content. Persisting it as a version is the
SummaryVersionChain's job; ``summarize_resource`` ties the two together and
always generates before it writes, so a failed call leaves no empty version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from semlink.db.models import SummaryKind, SummaryLength, SummaryType, SummaryVersion
from semlink.errors import SummarizationUnavailable
from semlink.similarity import llm_client
from semlink.summaries.chain import RegenerationResult, SummaryVersionChain

log = logging.getLogger(__name__)

SUMMARY_PROMPTS: dict[SummaryType, dict[SummaryLength, str]] = {
    SummaryType.GENERAL: {
        SummaryLength.SHORT: "Provide a concise 2-3 sentence summary of the main points in this content.",
        SummaryLength.MEDIUM: (
            "Create a comprehensive summary in 1-2 paragraphs covering the key points, "
            "main arguments, and important details."
        ),
        SummaryLength.LONG: (
            "Generate a detailed summary that covers all major points, supporting details, "
            "context, and implications. Structure it with clear sections if appropriate."
        ),
    },
    SummaryType.TECHNICAL: {
        SummaryLength.SHORT: (
            "Summarize the technical aspects, methodologies, and key findings in 2-3 sentences."
        ),
        SummaryLength.MEDIUM: (
            "Provide a technical summary covering methodologies, key findings, technical "
            "details, and implementation aspects in 1-2 paragraphs."
        ),
        SummaryLength.LONG: (
            "Create a comprehensive technical summary including methodologies, detailed "
            "findings, technical specifications, implementation details, and technical "
            "implications."
        ),
    },
    SummaryType.EXECUTIVE: {
        SummaryLength.SHORT: (
            "Provide an executive summary focusing on key decisions, outcomes, and business "
            "impact in 2-3 sentences."
        ),
        SummaryLength.MEDIUM: (
            "Create an executive summary covering strategic points, key decisions, outcomes, "
            "and business implications in 1-2 paragraphs."
        ),
        SummaryLength.LONG: (
            "Generate a detailed executive summary with strategic overview, key decisions, "
            "outcomes, business impact, and recommendations."
        ),
    },
    SummaryType.BRIEF: {
        SummaryLength.SHORT: "Extract the most essential point in one sentence.",
        SummaryLength.MEDIUM: "Provide the 3-5 most important points in bullet format.",
        SummaryLength.LONG: "List the key takeaways and action items in a structured format.",
    },
    SummaryType.DETAILED: {
        SummaryLength.SHORT: (
            "Provide a detailed overview of the main topic and its significance in 2-3 sentences."
        ),
        SummaryLength.MEDIUM: (
            "Create a thorough summary covering all important aspects, context, and details "
            "in 2-3 paragraphs."
        ),
        SummaryLength.LONG: (
            "Generate an exhaustive summary covering all aspects, background, details, "
            "implications, and related information."
        ),
    },
    SummaryType.LAYMAN: {
        SummaryLength.SHORT: (
            "Explain the main idea in simple terms that anyone can understand in 2-3 sentences."
        ),
        SummaryLength.MEDIUM: (
            "Provide a clear, jargon-free explanation of the content that's accessible to a "
            "general audience in 1-2 paragraphs."
        ),
        SummaryLength.LONG: (
            "Create a comprehensive explanation using simple language, analogies, and examples "
            "that make complex topics accessible to everyone."
        ),
    },
}

TOKEN_LIMITS: dict[SummaryLength, int] = {
    SummaryLength.SHORT: 150,
    SummaryLength.MEDIUM: 500,
    SummaryLength.LONG: 1000,
    SummaryLength.CUSTOM: 800,
}

_SYSTEM_PROMPT = """\
You are an expert content summarizer. Your task is to create high-quality \
summaries that are accurate, concise, and useful.

Summary Type: {type}
Summary Length: {length}
{extras}
Instructions: {instructions}

Please provide only the summary without any meta-commentary or explanations."""

_DEFAULT_MODEL = "openai/gpt-4o-mini"
_MAX_INPUT_CHARS = 8000
_TEMPERATURE = 0.3


@dataclass
class SummaryOptions:
    """How a summary should be written.

    Attributes:
        kind:          Type and length of the summary.
        custom_prompt: Replaces the built-in instructions when set.
        tone:          Optional tone ("formal", "friendly", ...).
        audience:      Optional target audience.
        focus:         Optional list of focus areas.
    """

    kind: SummaryKind = field(default_factory=SummaryKind)
    custom_prompt: str | None = None
    tone: str | None = None
    audience: str | None = None
    focus: list[str] = field(default_factory=list)


def instructions_for(options: SummaryOptions) -> str:
    """The instruction line for *options*; CUSTOM length without a prompt falls back to GENERAL/MEDIUM."""
    if options.custom_prompt:
        return options.custom_prompt
    prompts = SUMMARY_PROMPTS[options.kind.type]
    if options.kind.length in prompts:
        return prompts[options.kind.length]
    return SUMMARY_PROMPTS[SummaryType.GENERAL][SummaryLength.MEDIUM]


def build_system_prompt(options: SummaryOptions) -> str:
    extras = []
    if options.tone:
        extras.append(f"Tone: {options.tone}")
    if options.audience:
        extras.append(f"Target Audience: {options.audience}")
    if options.focus:
        extras.append(f"Focus Areas: {', '.join(options.focus)}")
    return _SYSTEM_PROMPT.format(
        type=options.kind.type.value,
        length=options.kind.length.value,
        extras="".join(f"{line}\n" for line in extras),
        instructions=instructions_for(options),
    )


class ResourceSummarizer:
    """Generate summary text for a resource's content.

    Args:
        model:       LiteLLM model string for summary generation.
        num_retries: Retries passed through to LiteLLM.
    """

    def __init__(self, model: str = _DEFAULT_MODEL, num_retries: int = 3) -> None:
        self._model = model
        self._num_retries = num_retries

    @property
    def model(self) -> str:
        return self._model

    def generate(self, text: str, options: SummaryOptions | None = None) -> str:
        """Return a summary of *text*.

        Raises:
            SummarizationUnavailable: On empty input, a failed call or an empty reply.
        """
        options = options or SummaryOptions()
        if not text.strip():
            raise SummarizationUnavailable("Cannot summarize empty content.")
        messages = [
            {"role": "system", "content": build_system_prompt(options)},
            {"role": "user", "content": text[:_MAX_INPUT_CHARS]},
        ]
        try:
            content = llm_client.complete(
                self._model,
                messages,
                max_tokens=TOKEN_LIMITS[options.kind.length],
                temperature=_TEMPERATURE,
                num_retries=self._num_retries,
            )
        except Exception as exc:
            raise SummarizationUnavailable(f"Summary generation failed: {exc}") from exc

        content = content.strip()
        if not content:
            raise SummarizationUnavailable("The model returned an empty summary.")
        return content


def summarize_resource(
    chain: SummaryVersionChain,
    summarizer: ResourceSummarizer,
    owner_id: str,
    resource_id: str,
    text: str,
    options: SummaryOptions | None = None,
    *,
    preserve_original: bool = True,
) -> RegenerationResult:
    """Summarize *text* and record it against (resource, kind).

    If the kind has no version yet, a chain is started and the result's
    ``original`` is None. Otherwise the current version is regenerated with
    *preserve_original* deciding between append and overwrite.

    Raises:
        SummarizationUnavailable: Generation failed; nothing was written.
        NotFound: The resource is not owned by *owner_id*.
        ConcurrentRegeneration: An overwrite of the same summary is in progress.
    """
    options = options or SummaryOptions()
    content = summarizer.generate(text, options)

    current: SummaryVersion | None = chain.current(owner_id, resource_id, options.kind)
    if current is None:
        version = chain.create(owner_id, resource_id, options.kind, content)
        log.info("Summarized %s (%s)", resource_id, options.kind)
        return RegenerationResult(summary=version, original=None)

    result = chain.regenerate(
        owner_id,
        resource_id,
        current.id,
        content,
        preserve_original=preserve_original,
    )
    log.info(
        "Regenerated %s summary for %s (%s)",
        options.kind,
        resource_id,
        "new version" if preserve_original else "overwritten",
    )
    return result
