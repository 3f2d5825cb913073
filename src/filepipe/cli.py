import os
import sys
import typer
from datetime import timedelta
from filepipe.config import settings
from filepipe.logging import logger, get_run_id

app = typer.Typer(no_args_is_help=True)

@app.callback()
def main():
    """
    filepipe: uploaded file processing pipeline.
    """
    pass

@app.command(name="doctor")
def doctor():
    """
    Check system configuration and environment health.
    """
    logger.info("Running doctor check...")

    failures: list[str] = []
    passed = 0

    print("\n🩺 filepipe doctor\n")

    # ── Check 1: Environment / Interpreter ──────────────────────────────────
    print("[Environment]")
    print(f"  Python: {sys.version.split()[0]}")
    print(f"  Run ID: {get_run_id()}")
    passed += 1

    # ── Check 2: Worker / webhook configuration ─────────────────────────────
    print("\n[Configuration]")
    print(f"  WORKER_BATCH_SIZE:           {settings.WORKER_BATCH_SIZE}")
    print(f"  WORKER_IDLE_SECONDS:         {settings.WORKER_IDLE_SECONDS}")
    print(f"  WEBHOOK_TIMEOUT:             {settings.WEBHOOK_TIMEOUT}")
    if settings.WEBHOOK_URL:
        print(f"  WEBHOOK_URL:                 ✅ {settings.WEBHOOK_URL}")
        passed += 1
    else:
        print("  WEBHOOK_URL:                 ❌ Missing")
        failures.append("WEBHOOK_URL is not set; notifications will stay pending")

    # ── Check 3: Data directory ──────────────────────────────────────────────
    print("\n[Data Directory]")
    data_dir = settings.DATA_DIR
    if data_dir.is_dir() and os.access(data_dir, os.W_OK):
        print(f"  {data_dir}/  ✅ Found and writable: {data_dir.absolute()}")
        passed += 1
    elif data_dir.is_dir():
        print(f"  {data_dir}/  ❌ Not writable: {data_dir.absolute()}")
        failures.append(f"{data_dir.absolute()} is not writable; uploads and SQLite need it")
    else:
        print(f"  {data_dir}/  ❌ Missing: {data_dir.absolute()}")
        failures.append(f"{data_dir.absolute()} not found; run `filepipe db init`")

    # ── Summary ──────────────────────────────────────────────────────────────
    total = passed + len(failures)
    print(f"\n{'─' * 50}")
    if failures:
        print(f"Result: {passed}/{total} checks passed\n")
        for msg in failures:
            print(f"  ❌ {msg}")
        print()
        raise typer.Exit(code=1)
    else:
        print(f"Result: {passed}/{total} checks passed, all good ✅")
        print()


db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")

@db_app.command("init")
def init():
    """Initialize the database tables."""
    from filepipe.db import init_db
    try:
        init_db()
        logger.info("Database initialized successfully.")
        print("✅ Database initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        print(f"❌ Failed: {e}")
        raise typer.Exit(code=1)


worker_app = typer.Typer(help="Background processing of uploaded files.")
app.add_typer(worker_app, name="worker")

@worker_app.command("run")
def worker_run(
    batch_size: int = typer.Option(settings.WORKER_BATCH_SIZE, help="How many files to fetch per poll"),
    max_files: int = typer.Option(settings.WORKER_MAX_FILES, help="Exit after this many files (0 = run forever)"),
    idle_seconds: float = typer.Option(settings.WORKER_IDLE_SECONDS, help="Wait between polls when there is no work"),
):
    """Poll for new files, encode them and notify the webhook."""
    from filepipe.domain.exceptions import ConfigurationError
    from filepipe.encoding.tabular import TabularFileEncoder
    from filepipe.infra.db.record_store import RecordStore
    from filepipe.infra.storage.blob_store import LocalBlobStore
    from filepipe.services.notifier import WebhookNotifier
    from filepipe.services.worker import FileWorker

    store = RecordStore()
    notifier = WebhookNotifier(store, settings.WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT)
    stale_after = (
        timedelta(seconds=settings.STALE_PROCESSING_SECONDS)
        if settings.STALE_PROCESSING_SECONDS else None
    )
    try:
        worker = FileWorker(
            store,
            TabularFileEncoder(LocalBlobStore(settings.DATA_DIR)),
            notifier,
            batch_size=batch_size,
            idle_seconds=idle_seconds,
            max_files=max_files,
            stale_after=stale_after,
        )
    except ConfigurationError as e:
        notifier.close()
        logger.error(e.message)
        print(f"❌ {e.message}")
        raise typer.Exit(code=1)

    print("✅ Start processing files.")
    try:
        handled = worker.run()
    finally:
        notifier.close()
    print(f"✅ Worker stopped after {handled} file(s).")


files_app = typer.Typer(help="Operator commands for file records.")
app.add_typer(files_app, name="files")

@files_app.command("renotify")
def renotify(limit: int = typer.Option(100, min=1, help="Maximum records to re-send")):
    """Re-send webhook notifications still pending for processed files."""
    from filepipe.domain.status import NotificationStatus
    from filepipe.infra.db.record_store import RecordStore
    from filepipe.services.notifier import WebhookNotifier

    store = RecordStore()
    records = store.find_undelivered(limit)
    if not records:
        print("No pending notifications.")
        return

    notifier = WebhookNotifier(store, settings.WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT)
    sent = 0
    try:
        for record in records:
            if notifier.notify(record) is NotificationStatus.SENDED:
                sent += 1
    finally:
        notifier.close()
    print(f"Delivered {sent}/{len(records)} pending notification(s).")
    if sent < len(records):
        raise typer.Exit(code=1)

@files_app.command("requeue-stale")
def requeue_stale(
    older_than_minutes: int = typer.Option(30, min=1, help="Age of a processing record before it counts as stuck"),
):
    """Return files stuck in processing (crashed worker) to the new queue."""
    from filepipe.infra.db.record_store import RecordStore

    requeued = RecordStore().requeue_stale(timedelta(minutes=older_than_minutes))
    if not requeued:
        print("No stale files found.")
        return
    print(f"Requeued {len(requeued)} file(s):")
    for record in requeued:
        print(f"  [ID {record.id}] {record.original_name}")

if __name__ == "__main__":
    app()
