"""
demos — runnable demonstration programs.

  chat_model    — one system + user exchange through the chat backend
  provider_api  — the same exchange against the raw provider endpoint
  chat_client   — memory + structured output, pope searched by name
  rag           — chroma-backed retrieval + memory + structured output

Run with ``python -m demos.<name> --help``.
"""
