"""Work partitioning and fork/join execution for bulk matrix operations.

Workers never share mutable state while computing: dense kernels hand
each chunk a disjoint row range of a pre-allocated output buffer, sparse
kernels let each chunk build its own partial mapping which is merged
once every chunk has finished.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from ._runtime import get_num_threads

logger = logging.getLogger(__name__)

# Extra chunks per worker so uneven sparse rows still balance out.
CHUNKS_PER_WORKER = 4


def resolve_workers(num_threads=None):
    """Number of workers for one call: the argument, else the runtime setting."""
    if num_threads is None:
        return get_num_threads()
    num_threads = int(num_threads)
    if num_threads < 1:
        raise ValueError("num_threads must be >= 1")
    return num_threads


def chunk_count(n_items, workers):
    """How many chunks to cut ``n_items`` units of work into.

    At least ``workers`` chunks whenever there are that many items, never
    more chunks than items, and never fewer than one.
    """
    if n_items <= 0:
        return 1
    return max(1, min(n_items, workers * CHUNKS_PER_WORKER))


def partition_range(n, n_chunks):
    """Split ``range(n)`` into ``n_chunks`` contiguous ``(start, stop)`` ranges.

    Ranges are disjoint, cover ``[0, n)`` exactly and differ in length by
    at most one. Empty ranges are never produced.
    """
    if n <= 0:
        return []
    n_chunks = max(1, min(int(n_chunks), n))
    base, extra = divmod(n, n_chunks)
    bounds = []
    start = 0
    for c in range(n_chunks):
        stop = start + base + (1 if c < extra else 0)
        bounds.append((start, stop))
        start = stop
    return bounds


def partition_weighted(items, weights, n_chunks):
    """Group ``items`` into contiguous chunks of roughly equal total weight.

    Parameters
    ----------
    items : sequence
        Units of work, kept in order.
    weights : sequence of int
        Estimated cost of each item; zero weights are allowed.
    n_chunks : int
        Target number of chunks.

    Returns
    -------
    list of list
        Every item appears in exactly one chunk; no chunk is empty.
    """
    items = list(items)
    weights = [max(0, int(w)) for w in weights]
    if len(items) != len(weights):
        raise ValueError("items and weights must have the same length")
    if not items:
        return []
    n_chunks = max(1, min(int(n_chunks), len(items)))
    total = sum(weights)
    if total == 0:
        return [items[start:stop] for start, stop in partition_range(len(items), n_chunks)]

    target = total / n_chunks
    chunks = []
    current = []
    acc = 0
    for idx, (item, w) in enumerate(zip(items, weights)):
        current.append(item)
        acc += w
        remaining_items = len(items) - idx - 1
        remaining_chunks = n_chunks - len(chunks) - 1
        # close the chunk once it reaches its share of the total weight,
        # keeping enough items back so later chunks are non-empty
        if remaining_chunks > 0 and (
            acc >= target * (len(chunks) + 1) or remaining_items == remaining_chunks
        ):
            chunks.append(current)
            current = []
    if current:
        chunks.append(current)
    return chunks


def run_chunks(fn, chunks, workers):
    """Apply ``fn`` to every chunk and return the results in chunk order.

    Runs inline when there is a single worker or a single chunk; otherwise
    uses a fixed-size thread pool and joins on all chunks. An exception
    raised by any chunk propagates to the caller.
    """
    chunks = list(chunks)
    if workers <= 1 or len(chunks) <= 1:
        return [fn(chunk) for chunk in chunks]
    pool_size = min(workers, len(chunks))
    logger.debug("dispatching %d chunks to %d threads", len(chunks), pool_size)
    with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="linmat") as pool:
        return list(pool.map(fn, chunks))


def merge_partials(partials):
    """Union of partial ``{key: value}`` maps, summing values on key collision.

    Partials are folded in the given (chunk) order, so the result does not
    depend on which thread produced which partial.
    """
    partials = list(partials)
    if not partials:
        return {}
    merged = dict(partials[0])
    for part in partials[1:]:
        for key, value in part.items():
            prev = merged.get(key)
            merged[key] = value if prev is None else prev + value
    return merged
