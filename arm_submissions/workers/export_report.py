import argparse
from pathlib import Path

from arm_submissions.services.reporting import PERIODS, export_csv, export_filename, filter_submissions
from arm_submissions.services.submission_store import SubmissionStore, build_store
from arm_submissions.utils.config import EXPORT_DIR, ensure_dirs
from arm_submissions.utils.logger import get_logger


logger = get_logger("export-report")


def run(period: str = "all", store: SubmissionStore | None = None, out_dir: Path = EXPORT_DIR) -> Path:
    if store is None:
        store = build_store()
    records = filter_submissions(store.list_all(), period=period)
    if not records:
        logger.info("No submissions for period %s", period)

    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / export_filename(period)
    out_path.write_text(export_csv(records), encoding="utf-8")
    logger.info("Wrote %d submission(s) to %s", len(records), out_path)
    return out_path


def main():
    parser = argparse.ArgumentParser(description="Export the ARM submissions report as CSV.")
    parser.add_argument("--period", choices=PERIODS, default="all")
    args = parser.parse_args()
    ensure_dirs()
    run(args.period)


if __name__ == "__main__":
    main()
