# visualize.py
import os
import numpy as np
import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    os.makedirs(os.path.dirname(outpath) or ".", exist_ok=True)


def plot_miss_ratio(rows, x_key, outpath, title=None):
    """One line per (trace, replacement, write policy) of miss ratio against x_key."""
    _ensure_dir(outpath)
    series = {}
    for r in rows:
        series.setdefault((r["trace"], r["replacement"], r["wb"]), []).append((r[x_key], r["miss_ratio"]))
    plt.figure(figsize=(8,4))
    for (trace, repl, wb), points in sorted(series.items()):
        points.sort()
        xs, ys = zip(*points)
        plt.plot(xs, ys, marker='o', label=f"{trace} {repl}/{wb}")
    plt.xscale("log", base=2)
    plt.title(title or f"Miss Ratio vs {x_key}")
    plt.xlabel(x_key)
    plt.ylabel("Miss ratio")
    plt.grid(True)
    if series:
        plt.legend(fontsize="small")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_memory_traffic(rows, outpath):
    # grouped bars: WB vs WT reads/writes per cache size
    _ensure_dir(outpath)
    sizes = sorted({r["size_bytes"] for r in rows})
    x = np.arange(len(sizes))
    width = 0.2
    plt.figure(figsize=(8,4))
    offset = -1.5
    for wb in ("WB", "WT"):
        for key in ("mem_reads", "mem_writes"):
            totals = [sum(r[key] for r in rows if r["wb"] == wb and r["size_bytes"] == s) for s in sizes]
            plt.bar(x + offset * width, totals, width, label=f"{wb} {key}")
            offset += 1
    plt.xticks(x, [str(s) for s in sizes])
    plt.title("Memory Traffic: Write-Back vs Write-Through")
    plt.xlabel("Cache size (bytes)")
    plt.ylabel("Memory accesses")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
