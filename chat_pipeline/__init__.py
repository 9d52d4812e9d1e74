"""
chat_pipeline — chat-model orchestration with retrieval-augmented generation.

Components:
  messages       — role-tagged messages + system-first ordering
  memory         — per-session conversation history
  retriever      — metadata filter expressions + context augmentation
  chroma_client  — ChromaDB-backed vector store
  embedder       — text → vector (sentence-transformers or hash)
  ingestor       — load the JSON corpus into an empty store
  output_parser  — LLM text → pydantic record
  llm_engine     — OpenAI-compatible chat backend (Mistral, Ollama, OpenAI)
  pipeline       — one chat turn composed from the above
  factory        — pipelines assembled from Settings
"""

__version__ = "0.1.0"
