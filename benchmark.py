"""
Benchmark: immupdate vs deep-copy-then-mutate.

The usual way to "update" an immutable tree without a helper is to
deep-copy it and mutate the copy.  This benchmark compares that against
deep_update on a realistic config tree:

    1. Time per update
    2. Cost of an update that changes nothing
    3. How much of the tree the two approaches share with the original

The point is NOT only speed: a deep copy breaks every identity check a
caller might use for caching, while deep_update keeps all of them valid
except along the updated path.
"""

import copy
import time

from immupdate import DELETE, deep_update, update


# ═══════════════════════════════════════════════════════════════════
#  TEST DATA
# ═══════════════════════════════════════════════════════════════════

CONFIG = {
    "server": {
        "host": "0.0.0.0",
        "port": 443,
        "tls": True,
        "workers": 4,
    },
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool_size": 10,
        "ssl": True,
    },
    "logging": {
        "level": "WARN",
        "format": "json",
        "outputs": ["stdout", "file"],
    },
    "cache": {
        "backend": "redis",
        "ttl": 300,
        "max_size": 10000,
    },
    "services": [
        {"name": f"svc-{i}", "replicas": 2, "env": {"REGION": "eu", "TIER": "web"}}
        for i in range(200)
    ],
}

ITERATIONS = 2000


def _time(fn, iterations=ITERATIONS):
    start = time.perf_counter()
    for _ in range(iterations):
        fn()
    return (time.perf_counter() - start) / iterations


def _count_nodes(value):
    if isinstance(value, dict):
        return 1 + sum(_count_nodes(v) for v in value.values())
    if isinstance(value, list):
        return 1 + sum(_count_nodes(v) for v in value)
    return 0


def _count_shared(old, new):
    """Number of containers in `new` that are the very objects found in `old`."""
    if old is new:
        return _count_nodes(new)
    if isinstance(old, dict) and isinstance(new, dict):
        return sum(_count_shared(old[k], new[k]) for k in new if k in old)
    if isinstance(old, list) and isinstance(new, list):
        return sum(_count_shared(o, n) for o, n in zip(old, new))
    return 0


# ═══════════════════════════════════════════════════════════════════
#  BENCHMARKS
# ═══════════════════════════════════════════════════════════════════

def with_deep_update():
    return (deep_update(CONFIG)
            .at("services").at(150).abort_if_absent()
            .at("env").at("TIER")
            .set("worker"))


def with_deepcopy():
    clone = copy.deepcopy(CONFIG)
    clone["services"][150]["env"]["TIER"] = "worker"
    return clone


def benchmark_single_update():
    print("=" * 70)
    print("  §1  SINGLE DEEP UPDATE")
    print("=" * 70)
    print()

    t_update = _time(with_deep_update)
    t_copy = _time(with_deepcopy, iterations=200)

    assert with_deep_update() == with_deepcopy()

    print(f"  deep_update:           {t_update * 1e6:9.1f}µs")
    print(f"  deepcopy + mutate:     {t_copy * 1e6:9.1f}µs")
    print(f"  Speed-up:              {t_copy / t_update:9.1f}x")
    print()


def benchmark_noop():
    print("=" * 70)
    print("  §2  UPDATES THAT CHANGE NOTHING")
    print("=" * 70)
    print()

    same = CONFIG["services"][150]["env"]["TIER"]
    t_noop = _time(lambda: deep_update(CONFIG)
                   .at("services").at(150).at("env").at("TIER").set(same))
    t_abort = _time(lambda: deep_update(CONFIG)
                    .at("services").at(999).abort_if_absent().at("env").set({}))
    t_shallow = _time(lambda: update(CONFIG["server"], {"port": CONFIG["server"]["port"], "missing": DELETE}))

    print(f"  Same value (no-op):    {t_noop * 1e6:9.1f}µs")
    print(f"  Guard abort:           {t_abort * 1e6:9.1f}µs")
    print(f"  Shallow no-op:         {t_shallow * 1e6:9.1f}µs")
    print()


def benchmark_sharing():
    print("=" * 70)
    print("  §3  STRUCTURAL SHARING")
    print("=" * 70)
    print()

    total = _count_nodes(CONFIG)
    shared_update = _count_shared(CONFIG, with_deep_update())
    shared_copy = _count_shared(CONFIG, with_deepcopy())

    print(f"  Containers in tree:    {total}")
    print(f"  Shared (deep_update):  {shared_update}  ({shared_update / total * 100:.1f}%)")
    print(f"  Shared (deepcopy):     {shared_copy}  ({shared_copy / total * 100:.1f}%)")
    print()


def main():
    print()
    print("╔══════════════════════════════════════════════════════════════════╗")
    print("║           immupdate — Copy-on-write Update Benchmark            ║")
    print("╚══════════════════════════════════════════════════════════════════╝")
    print()

    benchmark_single_update()
    benchmark_noop()
    benchmark_sharing()


if __name__ == "__main__":
    main()
