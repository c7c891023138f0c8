from loguru import logger
import os
import sys
from pathlib import Path


def enrich_record(record):
    file_path = Path(record["file"].path)
    try:
        relative_path = file_path.relative_to(Path.cwd())
    except ValueError:
        relative_path = file_path
    record["extra"]["rel_path"] = str(relative_path)

    # bound context (e.g. logger.contextualize(cluster=1)) is shown as a prefix
    prefix_keys = [k for k in record["extra"].keys() if k not in ("rel_path", "formatted_prefix")]
    if prefix_keys:
        record["extra"]["formatted_prefix"] = " ".join(f"[{record['extra'][k]}]" for k in prefix_keys) + " "
    else:
        record["extra"]["formatted_prefix"] = ""

    return True


def configure_logger(level: str = ""):
    level = level or os.getenv("CLOUD_MACHINE_LOG_LEVEL", "INFO")
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSSSSS}</green> | <level>{level: <8}</level> | <cyan>{extra[rel_path]}</cyan>:<cyan>{line}</cyan> - <level>{extra[formatted_prefix]}{message}</level>",
        colorize=True,
        filter=enrich_record
    )
