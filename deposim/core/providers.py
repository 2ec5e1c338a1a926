"""Catalogue of supported LLM providers and their models.

Pricing is USD per 1M tokens as (input, output).
"""

from pydantic import BaseModel, Field

from deposim.core.errors import ConfigurationError, ErrorCode


class ModelInfo(BaseModel):
    id: str
    name: str
    input_price: float = 0.0
    output_price: float = 0.0


class ProviderInfo(BaseModel):
    id: str
    name: str
    requires_api_key: bool = True
    default_model: str
    models: list[ModelInfo] = Field(default_factory=list)

    def get_model(self, model_id: str) -> ModelInfo | None:
        for model in self.models:
            if model.id == model_id:
                return model
        return None


PROVIDERS: dict[str, ProviderInfo] = {
    "openai": ProviderInfo(
        id="openai",
        name="OpenAI",
        default_model="gpt-4.1-mini",
        models=[
            ModelInfo(id="gpt-4.1-mini", name="GPT-4.1 Mini", input_price=0.40, output_price=1.60),
            ModelInfo(id="gpt-4.1-nano", name="GPT-4.1 Nano", input_price=0.10, output_price=0.40),
            ModelInfo(id="gpt-4o", name="GPT-4o", input_price=2.50, output_price=10.0),
            ModelInfo(id="gpt-4o-mini", name="GPT-4o Mini", input_price=0.15, output_price=0.60),
            ModelInfo(id="o3-mini", name="o3-mini", input_price=1.10, output_price=4.40),
        ],
    ),
    "anthropic": ProviderInfo(
        id="anthropic",
        name="Anthropic",
        default_model="claude-sonnet-4-5-20250929",
        models=[
            ModelInfo(
                id="claude-sonnet-4-5-20250929",
                name="Claude Sonnet 4.5",
                input_price=3.0,
                output_price=15.0,
            ),
            ModelInfo(
                id="claude-haiku-4-5-20251001",
                name="Claude Haiku 4.5",
                input_price=0.80,
                output_price=4.0,
            ),
            ModelInfo(
                id="claude-opus-4-5-20251101",
                name="Claude Opus 4.5",
                input_price=15.0,
                output_price=75.0,
            ),
        ],
    ),
    "gemini": ProviderInfo(
        id="gemini",
        name="Google Gemini",
        default_model="gemini-2.5-flash",
        models=[
            ModelInfo(id="gemini-2.5-flash", name="Gemini 2.5 Flash", input_price=0.35, output_price=0.70),
            ModelInfo(id="gemini-2.5-pro", name="Gemini 2.5 Pro", input_price=3.50, output_price=10.50),
        ],
    ),
    "ollama": ProviderInfo(
        id="ollama",
        name="Ollama (Local)",
        requires_api_key=False,
        default_model="llama3:latest",
        models=[
            ModelInfo(id="llama3:latest", name="Llama 3"),
            ModelInfo(id="llama3.1:8b", name="Llama 3.1 8B"),
            ModelInfo(id="mistral:latest", name="Mistral"),
            ModelInfo(id="gemma:latest", name="Gemma"),
        ],
    ),
}


def get_provider(provider_id: str) -> ProviderInfo:
    """
    Look up a provider by id.

    Raises:
        ConfigurationError: If the provider is unknown
    """
    provider = PROVIDERS.get(provider_id)
    if provider is None:
        raise ConfigurationError(
            f"Unknown provider: {provider_id}",
            setting="provider",
            code=ErrorCode.INVALID_PROVIDER,
        )
    return provider


def resolve_model(provider_id: str, model: str | None) -> str:
    """Model to use for a provider, falling back to the provider default."""
    provider = get_provider(provider_id)
    return model or provider.default_model


def list_providers() -> list[ProviderInfo]:
    return list(PROVIDERS.values())
