"""File Ingest -- poll a directory for .txt files and hand them downstream one at a time.

Core modules:
    config    -- Configuration via pydantic-settings (INGESTION_DIR, COMPLETED_DIR,
                 ERROR_DIR are required). Loguru sink setup.
    cli       -- Click entry point (`file-ingest`). Loads .env, runs the service
                 until SIGINT/SIGTERM, or a single pass with --once.
    service   -- Wires queue, scanner, processor, and scheduler; cooperative stop.
    scanner   -- Producer. Lists the inbound directory, queues accepted files,
                 moves everything else to the error directory.
    processor -- Single consumer. Reads each file, hands it off, moves it to the
                 completed directory (or the error directory on failure).
    channel   -- Unbounded thread-safe FIFO with a CANCELLED close signal.
    scheduler -- Fixed-rate, non-overlapping timer thread.
    handoff   -- Downstream hand-off protocol and the logging stand-in.
    fsops     -- Replace-if-exists relocation with a cross-device fallback.
    models    -- FileState, FileTask, ScanResult, ProcessingStats.
    errors    -- IngestionError hierarchy.
"""
