"""
Answer pipeline: classification, canned answers, retrieval and generation.

Import submodules directly (docs_expert.pipeline.generator, ...); this file
stays import-free so schemas can be loaded without pulling in handlers.
"""
