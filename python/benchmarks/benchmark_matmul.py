import argparse
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

try:
    import scipy.sparse as sp
except Exception:
    sp = None

from linmat import DenseMatrix, SparseMatrix, matmul_dense, matmul_sparse


# ---------- Matrix builders ----------


def build_dense(n: int, seed: int, dtype: np.dtype) -> Tuple[np.ndarray, np.ndarray]:
    rs = np.random.RandomState(seed)
    a = rs.standard_normal((n, n)).astype(dtype, copy=False)
    b = rs.standard_normal((n, n)).astype(dtype, copy=False)
    return a, b


def build_sparse(n: int, density: float, seed: int, dtype: np.dtype) -> Tuple[Any, Any]:
    if sp is None:
        raise RuntimeError("SciPy is required to build test matrices")
    a = sp.random(n, n, density=density, format="coo", dtype=dtype, random_state=seed)
    b = sp.random(n, n, density=density, format="coo", dtype=dtype, random_state=seed + 1)
    return a, b


def coo_to_linmat(m: Any) -> SparseMatrix:
    return SparseMatrix.from_arrays(m.row, m.col, m.data, m.shape, dtype=m.dtype)


# ---------- Timing helpers ----------


def time_op(fn: Callable[[], Any], warmup: int, repeat: int) -> List[float]:
    for _ in range(warmup):
        fn()
    times: List[float] = []
    for _ in range(repeat):
        t0 = time.perf_counter()
        fn()
        t1 = time.perf_counter()
        times.append(t1 - t0)
    return times


def summarize(name: str, times: List[float]) -> Optional[Dict[str, float]]:
    if not times:
        return None
    arr = np.array(times, dtype=np.float64)
    return {
        "name": name,
        "min_ms": float(arr.min() * 1e3),
        "median_ms": float(np.median(arr) * 1e3),
        "mean_ms": float(arr.mean() * 1e3),
    }


def thread_counts(args) -> List[int]:
    return sorted({max(1, int(t)) for t in args.threads.split(",") if t.strip()})


# ---------- Benchmarks ----------


def bench_dense(args, dtype, results: List[Dict[str, float]], notes: List[str]) -> None:
    a, b = build_dense(args.n, args.seed, dtype)
    A = DenseMatrix.from_array(a)
    B = DenseMatrix.from_array(b)

    if not args.no_numpy:
        stats = summarize("numpy:matmul", time_op(lambda: a @ b, args.warmup, args.repeat))
        if stats:
            results.append(stats)

    reference = None
    for t in thread_counts(args):
        times = time_op(lambda: matmul_dense(A, B, num_threads=t), args.warmup, args.repeat)
        stats = summarize(f"linmat:dense[t={t}]", times)
        if stats:
            results.append(stats)
        if args.validate:
            out = matmul_dense(A, B, num_threads=t)
            if reference is None:
                reference = out
                err = float(np.max(np.abs(out.toarray() - a @ b)))
                notes.append(f"dense: max |linmat - numpy| = {err:.3e}")
            elif not np.array_equal(reference.data, out.data):
                notes.append(f"dense: t={t} differs from t={thread_counts(args)[0]}")


def bench_sparse(args, dtype, results: List[Dict[str, float]], notes: List[str]) -> None:
    if sp is None:
        raise SystemExit("SciPy is required for the sparse benchmark (to build matrices)")
    a, b = build_sparse(args.n, args.density, args.seed, dtype)
    A = coo_to_linmat(a)
    B = coo_to_linmat(b)

    if not args.no_scipy:
        a_csr, b_csr = a.tocsr(), b.tocsr()
        stats = summarize(
            "scipy:csr@csr", time_op(lambda: a_csr @ b_csr, args.warmup, args.repeat)
        )
        if stats:
            results.append(stats)

    reference = None
    for t in thread_counts(args):
        times = time_op(lambda: matmul_sparse(A, B, num_threads=t), args.warmup, args.repeat)
        stats = summarize(f"linmat:sparse[t={t}]", times)
        if stats:
            results.append(stats)
        if args.validate:
            out = matmul_sparse(A, B, num_threads=t)
            if reference is None:
                reference = out
                expected = (a.tocsr() @ b.tocsr()).toarray()
                err = float(np.max(np.abs(out.toarray() - expected), initial=0.0))
                notes.append(f"sparse: max |linmat - scipy| = {err:.3e}, nnz={out.nnz}")
            elif reference.entries != out.entries:
                notes.append(f"sparse: t={t} differs from t={thread_counts(args)[0]}")


# ---------- Main ----------


def main():
    p = argparse.ArgumentParser(
        description="Matrix multiplication benchmark: linmat vs NumPy (dense) and SciPy (sparse)"
    )
    p.add_argument("--n", type=int, default=256)
    p.add_argument("--density", type=float, default=0.01)
    p.add_argument("--dtype", type=str, default="float64", choices=["float32", "float64"])
    p.add_argument("--kind", type=str, default="both", choices=["dense", "sparse", "both"])
    p.add_argument("--threads", type=str, default="1,4", help="Comma-separated worker counts")
    p.add_argument("--warmup", type=int, default=1)
    p.add_argument("--repeat", type=int, default=5)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--no_numpy", action="store_true")
    p.add_argument("--no_scipy", action="store_true")
    p.add_argument("--validate", action="store_true", help="Check results against NumPy/SciPy")

    args = p.parse_args()
    dtype = np.float64 if args.dtype == "float64" else np.float32

    results: List[Dict[str, float]] = []
    notes: List[str] = []
    if args.kind in ("dense", "both"):
        bench_dense(args, dtype, results, notes)
    if args.kind in ("sparse", "both"):
        bench_sparse(args, dtype, results, notes)

    print(f"Matmul: n={args.n} density={args.density} dtype={args.dtype} threads={args.threads}")
    for r in results:
        print(
            f"{r['name']:>24}: min {r['min_ms']:.3f} ms | median {r['median_ms']:.3f} ms | mean {r['mean_ms']:.3f} ms"
        )
    for line in notes:
        print("  - " + line)


if __name__ == "__main__":
    main()
