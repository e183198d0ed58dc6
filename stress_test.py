"""
Stress tests / adversarial evaluation of immupdate.

This script attempts to BREAK the claimed guarantees:
  1. Inputs are never mutated
  2. Siblings of the updated path are shared by reference
  3. An update that changes nothing returns the root itself
  4. A failed guard returns the root itself, whatever follows it
  5. Defaults are never aliased into later updates
  6. Deleting twice is the same as deleting once
  7. Long paths stay cheap
"""

import copy
import random
import time

from returns.maybe import Maybe, Nothing, Some

from immupdate import DELETE, deep_update, update


def test(name, condition, detail=""):
    status = "PASS" if condition else "FAIL"
    print(f"  [{status}] {name}" + (f"  ({detail})" if detail else ""))
    return condition


def is_some(value):
    return isinstance(value, Maybe) and value is not Nothing


def random_tree(depth=0, max_depth=4):
    """Generate a random tree of dicts, lists, Maybes and leaves."""
    if depth >= max_depth:
        return random.choice([1, 2, "a", "b", None, True, 3.5])

    kind = random.choice(["leaf", "dict", "dict", "list", "some", "nothing"])
    if kind == "leaf":
        return random.choice([42, "hello", None, False, 0])
    if kind == "dict":
        n = random.randint(1, 4)
        keys = random.sample(["a", "b", "c", "d", "e", "x", "y"], n)
        return {k: random_tree(depth + 1, max_depth) for k in keys}
    if kind == "list":
        return [random_tree(depth + 1, max_depth) for _ in range(random.randint(1, 4))]
    if kind == "some":
        return Some(random_tree(depth + 1, max_depth))
    return Nothing


def random_path(tree):
    """Walk existing containers from the root; returns the keys taken."""
    path = []
    current = tree
    while True:
        if is_some(current):
            current = current.unwrap()
        if isinstance(current, dict) and current and random.random() < 0.85:
            key = random.choice(list(current))
        elif isinstance(current, list) and current and random.random() < 0.85:
            key = random.randrange(len(current))
        else:
            return path
        path.append(key)
        current = current[key]


def walk(tree, path):
    """Values found at each prefix of `path`, root first."""
    values = [tree]
    for key in path:
        current = values[-1]
        if is_some(current):
            current = current.unwrap()
        values.append(current[key])
    return values


def builder_for(tree, path):
    b = deep_update(tree)
    for key in path:
        b = b.at(key)
    return b


def siblings_shared(old, new, path):
    """Every key not on the path is the same object at every level."""
    for key in path:
        if is_some(old):
            old, new = old.unwrap(), new.unwrap()
        if isinstance(old, dict):
            for k in old:
                if k != key and old[k] is not new[k]:
                    return False
        else:
            for i, item in enumerate(old):
                if i != key and item is not new[i]:
                    return False
        old, new = old[key], new[key]
    return True


random.seed(7)
trees = [random_tree() for _ in range(300)]
trees = [t for t in trees if isinstance(t, (dict, list))]


# ═══════════════════════════════════════════════════════════════
#  §1  IMMUTABILITY
# ═══════════════════════════════════════════════════════════════

print("=" * 70)
print("  §1  IMMUTABILITY — random trees, random paths")
print("=" * 70)

mutations = 0
for tree in trees:
    snapshot = copy.deepcopy(tree)
    path = random_path(tree)
    builder_for(tree, path).set({"fresh": object()})
    if tree != snapshot:
        mutations += 1

test(f"Input never mutated ({len(trees)} updates)", mutations == 0,
     f"{mutations} mutated")


# ═══════════════════════════════════════════════════════════════
#  §2  STRUCTURAL SHARING
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §2  STRUCTURAL SHARING")
print("=" * 70)

violations = 0
for tree in trees:
    path = random_path(tree)
    if not path:
        continue
    result = builder_for(tree, path).set("changed")
    if not siblings_shared(tree, result, path):
        violations += 1

test("Siblings of the path are shared", violations == 0,
     f"{violations} violations")


# ═══════════════════════════════════════════════════════════════
#  §3  IDENTITY ON NO CHANGE
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §3  IDENTITY ON NO CHANGE")
print("=" * 70)

copies = 0
for tree in trees:
    path = random_path(tree)
    current = walk(tree, path)[-1]
    if is_some(current):
        current = current.unwrap()
    elif current is Nothing:
        continue  # writes over an empty Maybe always rebuild
    if builder_for(tree, path).set(current) is not tree:
        copies += 1
    if builder_for(tree, path).modify(lambda v: v) is not tree:
        copies += 1

test("set(current) and modify(identity) return the root", copies == 0,
     f"{copies} needless copies")


# ═══════════════════════════════════════════════════════════════
#  §4  ABORT PURITY
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §4  ABORT PURITY")
print("=" * 70)

leaks = 0
for tree in trees:
    path = random_path(tree)
    parent = walk(tree, path)[-1]
    if is_some(parent):
        parent = parent.unwrap()
    if not isinstance(parent, dict) or "zz" in parent:
        continue
    result = (builder_for(tree, path)
              .at("zz").abort_if_absent()
              .at("q").with_default({})
              .at("r").with_default([])
              .at(0)
              .set("never"))
    if result is not tree:
        leaks += 1

test("A failed guard returns the root, whatever follows", leaks == 0,
     f"{leaks} leaks")

leaks = 0
for tree in trees:
    path = random_path(tree)
    if builder_for(tree, path).abort_if_not(lambda v: False).set("x") is not tree:
        leaks += 1
test("abort_if_not(False) returns the root", leaks == 0, f"{leaks} leaks")


# ═══════════════════════════════════════════════════════════════
#  §5  DEFAULTS ARE NEVER ALIASED
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §5  DEFAULTS ARE NEVER ALIASED")
print("=" * 70)

default = {"count": 0, "tags": []}
state = {}
for i in range(50):
    state = (deep_update(state)
             .at("bucket").with_default({})
             .at(f"k{i % 5}").with_default(default)
             .at("count")
             .modify(lambda c: c + 1))

test("Default unchanged after 50 updates", default == {"count": 0, "tags": []})
test("Each bucket counted independently",
     all(state["bucket"][f"k{i}"]["count"] == 10 for i in range(5)))
test("No bucket is the default object",
     all(state["bucket"][f"k{i}"] is not default for i in range(5)))


# ═══════════════════════════════════════════════════════════════
#  §6  DELETE IDEMPOTENCE
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §6  DELETE IDEMPOTENCE")
print("=" * 70)

mismatches = 0
for tree in trees:
    path = random_path(tree)
    if not path or not isinstance(path[-1], str):
        continue
    once = builder_for(tree, path).set(DELETE)
    twice = builder_for(once, path[:-1]).at(path[-1]).set(DELETE)
    if twice is not once:
        mismatches += 1

test("Deleting twice returns the first result", mismatches == 0,
     f"{mismatches} mismatches")

record = {"a": 1}
test("Shallow delete of a missing key is a no-op", update(record, {"b": DELETE}) is record)


# ═══════════════════════════════════════════════════════════════
#  §7  LONG PATHS
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §7  LONG PATHS")
print("=" * 70)


def make_deep(depth):
    v = {"leaf": 0}
    for i in range(depth):
        v = {"child": v, "level": i, "side": {"i": i}}
    return v


for depth in [10, 100, 500]:
    tree = make_deep(depth)
    b = deep_update(tree)
    for _ in range(depth):
        b = b.at("child")
    b = b.at("leaf")

    t0 = time.perf_counter()
    result = b.set(1)
    dt = time.perf_counter() - t0

    print(f"  Depth {depth}: {dt*1000:.3f}ms")
    test(f"Depth {depth}: side branches shared",
         result["side"] is tree["side"] and result["child"]["side"] is tree["child"]["side"])


# ═══════════════════════════════════════════════════════════════
#  SUMMARY
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  STRESS TEST SUMMARY")
print("=" * 70)
print("  If you see FAIL above, there's a bug.")
print("  If everything is PASS, the implementation is correct")
print("  for the tested cases (not a proof, but high confidence).")
