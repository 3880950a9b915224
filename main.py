# main.py
import json
import sys
from cache import CacheConfigError, SetAssociativeCache, simulate
from trace_reader import TraceOpenError, open_trace, read_trace

USAGE = "Usage: {prog} <CACHE_SIZE> <ASSOC> <REPLACEMENT> <WB> <TRACE_FILE>"
ARG_NAMES = ("cache size", "associativity", "replacement policy", "write policy")


def load_config(path="config.json"):
    with open(path, "r") as f:
        return json.load(f)


def format_results(stats):
    return (f"Miss ratio {stats.miss_ratio:f}\n"
            f"write {stats.mem_writes}\n"
            f"read {stats.mem_reads}")


def run(argv):
    """
    Simulate one cache over one trace. argv is the full command line.
    Returns the process exit code.
    """
    if len(argv) != 6:
        print(USAGE.format(prog=argv[0] if argv else "cachesim"), file=sys.stderr)
        return 1
    values = []
    for name, arg in zip(ARG_NAMES, argv[1:5]):
        try:
            values.append(int(arg))
        except ValueError:
            print(f"Invalid {name}: {arg!r} is not an integer.", file=sys.stderr)
            return 1
    cache_size, assoc, replacement, writeback = values

    try:
        cache = SetAssociativeCache(cache_size, assoc, replacement, writeback)
    except CacheConfigError as exc:
        print(f"Could not set up cache: {exc}", file=sys.stderr)
        return 1

    try:
        with open_trace(argv[5]) as f:
            stats = simulate(cache, read_trace(f))
    except TraceOpenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(format_results(stats))
    return 0


def main():
    sys.exit(run(sys.argv))


def sweep_main():
    from benchmark import SweepRunner
    from visualize import plot_memory_traffic, plot_miss_ratio

    cfg = load_config(sys.argv[1] if len(sys.argv) > 1 else "config.json")
    runner = SweepRunner(cfg)
    print("Starting sweep with config:", cfg.get("sweep", {}))
    rows = runner.run()
    out_cfg = cfg.get("output", {})
    paths = runner.save_results(rows, out_cfg)
    print("Sweep Summary:", runner.summarize(rows))
    print("Results saved to:", ", ".join(paths))

    # Plots
    by_part = {}
    for r in rows:
        by_part.setdefault(r["part"], []).append(r)
    if "A" in by_part:
        plot_miss_ratio(by_part["A"], "size_bytes", out_cfg.get("size_plot", "results/miss_ratio_vs_size.png"),
                        title="Miss Ratio vs Cache Size")
    if "B" in by_part:
        plot_memory_traffic(by_part["B"], out_cfg.get("traffic_plot", "results/memory_traffic.png"))
    assoc_rows = by_part.get("C", []) + by_part.get("D", [])
    if assoc_rows:
        plot_miss_ratio(assoc_rows, "assoc", out_cfg.get("assoc_plot", "results/miss_ratio_vs_assoc.png"),
                        title="Miss Ratio vs Associativity")
    print("Plots saved in", out_cfg.get("results_dir", "results"))


if __name__ == "__main__":
    main()
