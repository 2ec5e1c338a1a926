"""Token/cost accounting for model calls."""

from deposim.core.logging import get_logger
from deposim.core.providers import PROVIDERS

logger = get_logger(__name__)

# Pricing per 1M tokens: (input, output), built from the provider catalogue
MODEL_PRICING: dict[str, tuple[float, float]] = {
    model.id: (model.input_price, model.output_price)
    for provider in PROVIDERS.values()
    for model in provider.models
}


def estimate_cost(model: str, tokens_input: int, tokens_output: int) -> float:
    """Estimate cost in USD based on model pricing."""
    pricing = MODEL_PRICING.get(model)
    if not pricing:
        # Try prefix match for model variants
        for key, val in MODEL_PRICING.items():
            if model.startswith(key.rsplit("-", 1)[0]):
                pricing = val
                break
    if not pricing:
        logger.warning(f"No pricing found for model '{model}', using $0")
        return 0.0

    input_rate, output_rate = pricing
    cost = (tokens_input * input_rate / 1_000_000) + (tokens_output * output_rate / 1_000_000)
    return round(cost, 6)


def log_llm_usage(
    workflow: str,
    provider: str,
    model: str,
    tokens_input: int,
    tokens_output: int,
    duration_ms: int = 0,
    session_id: str | None = None,
) -> float:
    """Log a model call and return its estimated cost."""
    estimated_cost = estimate_cost(model, tokens_input, tokens_output)
    logger.debug(
        f"LLM usage: {workflow} session={session_id or '-'} "
        f"provider={provider} model={model} tokens={tokens_input}+{tokens_output} "
        f"cost=${estimated_cost:.4f} duration_ms={duration_ms}"
    )
    return estimated_cost
