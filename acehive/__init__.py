"""
Acehive Admin Console — Academic Resource Catalogue
====================================================
Hexagonal (Ports & Adapters) architecture.

Layer map
─────────────────────────────────────────────────────
  config/       Settings and the static degree → specialisation taxonomy
  domain/       Pure business objects (models, exceptions) — no I/O
  ports/        Abstract interface to the storage collaborator (Protocol)
  adapters/     Concrete storage backends (Supabase REST, Postgres)
  services/     Classification, submission, browsing, session logic;
                depends only on Ports, never Adapters
  interfaces/   Delivery layer: CLI, Streamlit admin console
  tests/        Full test suite: unit / integration / e2e

Swapping the backing store:
  1. Write a new adapter in adapters/ implementing StoragePort
  2. Add a branch to services/container.py
  3. Done — zero other files touched
"""
__version__ = "1.0.0"
