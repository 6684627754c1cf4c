"""
CSV export of analytics tables.
"""
import logging
import os
import traceback

logger = logging.getLogger(__name__)


def export_results_to_csv(frames, output_dir):
    """
    Write each non-empty DataFrame in ``frames`` to ``<output_dir>/<name>.csv``.

    Returns a mapping of table name to written path. Any write failure is
    raised to the caller; a partial export is never reported as success.
    """
    try:
        os.makedirs(output_dir, exist_ok=True)

        written = {}
        for name, frame in frames.items():
            if frame is None or frame.empty:
                logger.info(f"Skipping empty table {name}")
                continue
            path = os.path.join(output_dir, f"{name}.csv")
            frame.to_csv(path, index=False)
            written[name] = path
            logger.info(f"Wrote {len(frame)} {name} rows to {path}")

        return written
    except Exception as e:
        logger.error(f"Error exporting analytics tables to {output_dir}: {str(e)}")
        logger.error(traceback.format_exc())
        raise
