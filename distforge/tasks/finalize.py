"""Archive naming finalizer."""

from __future__ import annotations

import logging

from .graph import TaskGraph

logger = logging.getLogger("distforge.pipeline")


def finalize_archive_names(graph: TaskGraph) -> int:
    """
    Force every archive step's file name to ``<base_name>.<extension>``.

    Runs after all other customization, so appendix, version, classifier
    or an explicitly assigned archive name are overridden. Returns the
    number of archive steps visited.
    """
    count = 0
    for archive in graph.archives():
        final_name = f"{archive.base_name}.{archive.extension}"
        if archive.archive_name != final_name:
            logger.debug("Archive %s: %s -> %s", archive.name, archive.archive_name, final_name)
        archive.archive_name = final_name
        count += 1
    return count
