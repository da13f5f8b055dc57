"""
Swappable provider implementations.

Layer 1 (.env) selects the provider module by name:
    LLM_PROVIDER=openai          -> docs_expert.providers.llm.openai
    EMBEDDINGS_PROVIDER=openai   -> docs_expert.providers.embeddings.openai
    VECTORDB_PROVIDER=qdrant     -> docs_expert.providers.vectordb.qdrant

Layer 2 (provider module) builds its config from Settings in
`create_provider(settings)`. ServiceContainer imports the module and calls it.
"""
