"""Highlight Sync -- import ebook highlight exports into a personal library.

Core modules:
    config     -- Configuration via pydantic-settings (.env + env vars). CLI
                  flags passed as kwargs to SyncConfig, .env passed as _env_file.
    cli        -- Click CLI entry point (highlight-sync SOURCE_FILE)
    cli_library -- Click command group for browsing and editing a library
                  (highlight-library books|show|search|add-book|...)
    parsers    -- Format detection plus clippings and HTML export parsers.
                  Pure: no I/O, injected clock for timestamps.
    reconcile  -- Merge parsed books into the library. Exact-text duplicate
                  detection per book, title-only book matching, placeholder
                  books when metadata lookup fails.
    importer   -- Orchestration: parse, raise on nothing-to-import, load store,
                  reconcile, save.
    library    -- Book/highlight lifecycle: add, edit, cascade delete, thoughts,
                  per-book listing, library search.
    store      -- Single-file JSON library store, replaced atomically on save
    normalize  -- Shared key, author and page-number normalization
    concurrency -- Per-library lock, keyed by a hash of the library path

Subpackages:
    api        -- External API clients (Google Books metadata lookup)
"""
