# benchmark.py
import csv
import json
import os
import sys
import numpy as np
from cache import (BLOCK_SIZE, CacheConfigError, Replacement, SetAssociativeCache,
                   WritePolicy, simulate)
from trace_reader import load_trace

CSV_HEADER = ["trace", "size_bytes", "assoc", "replacement", "wb",
              "miss_ratio", "mem_writes", "mem_reads"]

DEFAULT_SIZES = [8192, 16384, 32768, 65536, 131072]
DEFAULT_ASSOCS = [1, 2, 4, 8, 16, 32, 64]


def generate_trace(num_requests=10000, working_set_kb=1024, read_ratio=0.8,
                   access_pattern="mixed", seed=None):
    """
    Build a synthetic list of (op, address) records over a working set.
    Addresses are block aligned. "sequential" walks the blocks with wrap,
    "random" picks uniformly, anything else ("mixed") takes the sequential
    walk 80% of the time and a random block otherwise.
    """
    rng = np.random.default_rng(seed)
    num_blocks = max(1, int(working_set_kb * 1024) // BLOCK_SIZE)

    if access_pattern == "sequential":
        blocks = np.arange(num_requests) % num_blocks
    elif access_pattern == "random":
        blocks = rng.integers(0, num_blocks, size=num_requests)
    else:
        sequential = rng.random(num_requests) < 0.8
        # the sequential pointer only advances on sequential picks
        walk = (np.cumsum(sequential) - 1) % num_blocks
        blocks = np.where(sequential, walk,
                          rng.integers(0, num_blocks, size=num_requests))

    ops = np.where(rng.random(num_requests) < read_ratio, "R", "W")
    addresses = blocks.astype(np.uint64) * BLOCK_SIZE
    return list(zip(ops.tolist(), addresses.tolist()))


def write_trace(records, path):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w") as f:
        for op, addr in records:
            f.write(f"{op} {addr:x}\n")
    return path


class SweepRunner:
    """
    Runs the cache-size / write-policy / associativity / replacement
    experiment parts over every configured trace.
    """

    def __init__(self, cfg):
        self.cfg = cfg
        sweep_cfg = cfg.get("sweep", {})
        self.sizes = sweep_cfg.get("sizes", DEFAULT_SIZES)
        self.assocs = sweep_cfg.get("assocs", DEFAULT_ASSOCS)
        self.fixed_assoc = sweep_cfg.get("fixed_assoc", 4)
        self.fixed_size = sweep_cfg.get("fixed_size", 32768)
        self.parts = sweep_cfg.get("parts", ["A", "B", "C", "D"])
        self.max_records = sweep_cfg.get("max_records")
        self.traces = cfg.get("traces", [])
        self.synthetic_defaults = cfg.get("synthetic", {})
        # synthetic traces are also written here so the CLI can replay them
        self.trace_dir = cfg.get("output", {}).get("trace_dir")

    def plan(self):
        """Yield (part, size, assoc, replacement, write_policy) in run order."""
        lru, fifo = Replacement.LRU, Replacement.FIFO
        wb, wt = WritePolicy.WRITE_BACK, WritePolicy.WRITE_THROUGH
        for part in self.parts:
            if part == "A":
                for size in self.sizes:
                    yield part, size, self.fixed_assoc, lru, wb
            elif part == "B":
                for size in self.sizes:
                    yield part, size, self.fixed_assoc, lru, wb
                    yield part, size, self.fixed_assoc, lru, wt
            elif part == "C":
                for assoc in self.assocs:
                    yield part, self.fixed_size, assoc, lru, wb
            elif part == "D":
                for assoc in self.assocs:
                    yield part, self.fixed_size, assoc, fifo, wb
            else:
                raise ValueError(f"unknown sweep part {part!r}")

    def _load(self, entry):
        if isinstance(entry, dict):
            params = dict(self.synthetic_defaults)
            params.update(entry.get("synthetic", {}))
            name = entry.get("name", f"synthetic-{params.get('access_pattern', 'mixed')}")
            records = generate_trace(**params)
            if self.max_records is not None:
                records = records[:self.max_records]
            if self.trace_dir:
                write_trace(records, os.path.join(self.trace_dir, name))
            return name, records
        return os.path.basename(entry), load_trace(entry, self.max_records)

    def run_case(self, trace_name, records, part, size, assoc, replacement, write_policy):
        print(f"[RUN] trace={trace_name} size={size} assoc={assoc} "
              f"repl={int(replacement)} wb={int(write_policy)}")
        try:
            cache = SetAssociativeCache(size, assoc, replacement, write_policy)
        except CacheConfigError as exc:
            print(f"[SKIP] {exc}", file=sys.stderr)
            return None
        stats = simulate(cache, records)
        geometry = cache.geometry()
        row = {
            "part": part,
            "trace": trace_name,
            "size_bytes": size,
            "assoc": assoc,
            "replacement": replacement.name,
            "wb": write_policy.label,
            "num_sets": geometry["num_sets"],
            "used_lines": geometry["used_lines"],
        }
        row.update(stats.as_dict())
        return row

    def run(self):
        rows = []
        for entry in self.traces:
            trace_name, records = self._load(entry)
            for case in self.plan():
                row = self.run_case(trace_name, records, *case)
                if row is not None:
                    rows.append(row)
        return rows

    @staticmethod
    def summarize(rows):
        summary = {}
        for part in sorted({r["part"] for r in rows}):
            part_rows = [r for r in rows if r["part"] == part]
            ratios = np.array([r["miss_ratio"] for r in part_rows])
            best = part_rows[int(np.argmin(ratios))]
            summary[part] = {
                "runs": len(part_rows),
                "mean_miss_ratio": float(ratios.mean()),
                "best": {k: best[k] for k in ("trace", "size_bytes", "assoc", "num_sets", "replacement",
                                              "wb", "hits", "misses", "miss_ratio")},
            }
        return summary

    def save_results(self, rows, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        paths = []
        groups = {}
        for row in rows:
            stem = os.path.splitext(row["trace"])[0]
            groups.setdefault((row["part"], stem), []).append(row)
        for (part, stem), part_rows in groups.items():
            path = os.path.join(results_dir, f"part{part}_{stem}.csv")
            with open(path, "w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(CSV_HEADER)
                for r in part_rows:
                    writer.writerow([r["trace"], r["size_bytes"], r["assoc"], r["replacement"],
                                     r["wb"], f"{r['miss_ratio']:f}", r["mem_writes"], r["mem_reads"]])
            paths.append(path)
        summary_path = os.path.join(results_dir, "summary.json")
        with open(summary_path, "w") as f:
            json.dump(self.summarize(rows), f, indent=2)
        paths.append(summary_path)
        return paths
