# cache.py
import enum
from dataclasses import dataclass

# Block (line) size in bytes. Not configurable.
BLOCK_SIZE = 64


class CacheConfigError(ValueError):
    """Raised when a cache geometry or policy code cannot be built."""


class Replacement(enum.IntEnum):
    LRU = 0
    FIFO = 1

    def ordering_key(self, line):
        # oldest key is evicted first
        if self is Replacement.LRU:
            return line.recency_ts
        return line.insertion_ts


class WritePolicy(enum.IntEnum):
    """
    Write-through never allocates on a write miss; write-back always does.
    """
    WRITE_THROUGH = 0
    WRITE_BACK = 1

    @property
    def label(self):
        return "WB" if self is WritePolicy.WRITE_BACK else "WT"


def decode(address, num_sets):
    """
    Split a byte address into (block_number, set_index, tag).
    tag * num_sets + set_index always gives back the block number.
    """
    block_number = address // BLOCK_SIZE
    return block_number, block_number % num_sets, block_number // num_sets


@dataclass
class CacheLine:
    valid: bool = False
    dirty: bool = False
    tag: int = 0
    recency_ts: int = 0
    insertion_ts: int = 0


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    mem_reads: int = 0
    mem_writes: int = 0

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def miss_ratio(self):
        total = self.accesses
        return self.misses / total if total else 0.0

    def as_dict(self):
        return {
            "hits": self.hits,
            "misses": self.misses,
            "mem_reads": self.mem_reads,
            "mem_writes": self.mem_writes,
            "miss_ratio": self.miss_ratio,
        }


class SetAssociativeCache:
    """
    Set-associative cache model with 64-byte blocks.
    Each set is a fixed list of `associativity` CacheLines indexed by way.
    Replacement is LRU or FIFO; writes are write-back/write-allocate or
    write-through/no-write-allocate. Only hit/miss decisions and memory
    traffic are modelled, no data is stored.
    """

    def __init__(self, size_bytes, associativity,
                 replacement=Replacement.LRU, write_policy=WritePolicy.WRITE_BACK):
        if size_bytes <= 0 or associativity <= 0:
            raise CacheConfigError("Invalid cache size or associativity.")
        set_bytes = BLOCK_SIZE * associativity
        if size_bytes % set_bytes != 0:
            raise CacheConfigError(
                f"cache size {size_bytes} is not a multiple of {BLOCK_SIZE} * {associativity}")
        # only codes 0 and 1 are accepted; others do not fall back to FIFO / write-through
        try:
            self.replacement = Replacement(replacement)
            self.write_policy = WritePolicy(write_policy)
        except ValueError as exc:
            raise CacheConfigError(str(exc)) from exc

        self.size_bytes = size_bytes
        self.associativity = associativity
        self.num_sets = size_bytes // set_bytes
        self.sets = [[CacheLine() for _ in range(associativity)]
                     for _ in range(self.num_sets)]
        # logical clock shared by recency and insertion stamps
        self.global_ts = 0
        self.stats = CacheStats()

    def _get_index_tag(self, addr):
        _, set_index, tag = decode(addr, self.num_sets)
        return set_index, tag

    def lookup(self, set_index, tag):
        for way, line in enumerate(self.sets[set_index]):
            if line.valid and line.tag == tag:
                return way
        return None

    def fill(self, set_index, way, tag, mark_dirty):
        line = self.sets[set_index][way]
        line.valid = True
        line.tag = tag
        line.dirty = mark_dirty
        self.global_ts += 1
        line.recency_ts = self.global_ts
        line.insertion_ts = self.global_ts

    def select_victim(self, set_index):
        ways = self.sets[set_index]
        for way, line in enumerate(ways):
            if not line.valid:
                return way
        # min() keeps the first of equal keys, so ties go to the lowest way
        return min(range(len(ways)),
                   key=lambda w: self.replacement.ordering_key(ways[w]))

    def update_on_hit(self, line):
        if self.replacement is Replacement.LRU:
            self.global_ts += 1
            line.recency_ts = self.global_ts

    def evict_if_needed(self, line):
        if line.valid and line.dirty and self.write_policy is WritePolicy.WRITE_BACK:
            self.stats.mem_writes += 1

    def _allocate(self, set_index, tag, mark_dirty):
        way = self.select_victim(set_index)
        self.evict_if_needed(self.sets[set_index][way])
        self.stats.mem_reads += 1
        self.fill(set_index, way, tag, mark_dirty)

    def access(self, op, addr):
        """
        Run one trace record through the cache. `op` is R/r or W/w.
        Return True on hit, False on miss.
        """
        if op in ("W", "w"):
            is_write = True
        elif op in ("R", "r"):
            is_write = False
        else:
            raise ValueError(f"unknown operation {op!r}")

        set_index, tag = self._get_index_tag(addr)
        way = self.lookup(set_index, tag)
        write_back = self.write_policy is WritePolicy.WRITE_BACK

        if way is not None:
            self.stats.hits += 1
            line = self.sets[set_index][way]
            self.update_on_hit(line)
            if is_write:
                if write_back:
                    line.dirty = True
                else:
                    self.stats.mem_writes += 1
            return True

        self.stats.misses += 1
        if not is_write:
            self._allocate(set_index, tag, mark_dirty=False)
        elif write_back:
            self._allocate(set_index, tag, mark_dirty=True)
        else:
            # no-write-allocate: straight to memory
            self.stats.mem_writes += 1
        return False

    def resident_blocks(self):
        """Block numbers currently held by valid lines."""
        return {line.tag * self.num_sets + set_index
                for set_index, ways in enumerate(self.sets)
                for line in ways if line.valid}

    def geometry(self):
        used_lines = sum(line.valid for ways in self.sets for line in ways)
        return {
            "cache_size_bytes": self.size_bytes,
            "line_size": BLOCK_SIZE,
            "associativity": self.associativity,
            "num_sets": self.num_sets,
            "replacement": self.replacement.name,
            "write_policy": self.write_policy.label,
            "used_lines": used_lines
        }


def simulate(cache, records):
    """Feed (op, address) records to `cache` in order and return its stats."""
    for op, addr in records:
        cache.access(op, addr)
    return cache.stats
