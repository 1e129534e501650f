import math
import re
from dataclasses import dataclass

# Dash separated rows above this size are overflow noise in the report
MAX_STAT_VALUE: int = 4 * 1024 * 1024 * 1024

CATEGORY_MEMORY = "Memory"
CATEGORY_RHI_MEMORY = "RHI Memory"
CATEGORY_OBJECT_CLASSES = "Object Classes"
CATEGORY_PERSISTENT = "Persistent"
CATEGORY_BINNED_MEMORY = "Binned Memory"
CATEGORY_POOL_CUR_ALLOC = "Pool Cur Alloc"
CATEGORY_POOL_MAX_ALLOC = "Pool Max Alloc"
CATEGORY_POOL_MEM_USED = "Pool Mem Used"
CATEGORY_POOL_MEM_SLACK = "Pool Mem Slack"
CATEGORY_RENDER_TARGET_POOLS = "Render Target Pools"
CATEGORY_TEXTURE_TOTAL_IN_MEM = "TextureTotal In Mem"
CATEGORY_TEXTURE_TOTAL_ON_DISK = "TextureTotal On Disk"
CATEGORY_TEXTURE_FORMAT_IN_MEM = "TextureFormat In Mem"
CATEGORY_TEXTURE_FORMAT_ON_DISK = "TextureFormat On Disk"
CATEGORY_TEXTURE_GROUP_IN_MEM = "TextureGroup In Mem"
CATEGORY_TEXTURE_GROUP_ON_DISK = "TextureGroup On Disk"
CATEGORY_TEXTURE_IN_MEM = "Texture In Mem"
CATEGORY_TEXTURE_ON_DISK = "Texture On Disk"

# Object lists filtered by one of these classes get their own category
OBJECT_LIST_CATEGORIES: dict[str, str] = {
    "SoundWave": "Object Soundwaves",
    "SkeletalMesh": "Object SkeletalMesh",
    "StaticMesh": "Object StaticMesh",
    "Level": "Object Level",
}

# (prefix, first suffix, second suffix)
BINNED_ALLOCATOR_PATTERNS: list[tuple[str, str, str]] = [
    ("Current Memory ", "Used", "Waste"),     # Current Memory 1553.98 MB used, plus 98.58 MB waste
    ("Peak Memory ", "Used", "Waste"),        # Peak Memory 1556.45 MB used, plus 99.49 MB waste
    ("Current OS Memory ", "Used", "Peak"),   # Current OS Memory 1652.56 MB, peak 1655.94 MB
    ("Current Waste ", "Waste", "Peak"),      # Current Waste 35.56 MB, peak 35.74 MB
    ("Current Used ", "Used", "Peak"),        # Current Used 1553.98 MB, peak 1556.45 MB
    ("Current Slack ", "Used", "Peak"),       # Current Slack 63.03 MB
]

TEXTURE_LIST_HEADER = "Cooked/OnDisk: Width x Height (Size in KB)"

_INTEGER_PATTERN = re.compile(r"\s*[+-]?\d+\s*")


@dataclass(frozen=True)
class LineSample:
    category: str
    subject: str
    value: int


def split_and_trim(line: str, separator: str) -> list[str]:
    """Splits on a single separator, dropping blank tokens and trimming the rest."""
    return [word.strip() for word in line.split(separator) if word.strip()]


def parse_int(text: str) -> int | None:
    if not _INTEGER_PATTERN.fullmatch(text):
        return None
    return int(text)


def parse_float(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def megabytes_to_bytes(value_mb: float) -> int:
    return int(value_mb * 1024 * 1024)


def decode_dash_separated_row(line: str, category: str) -> list[LineSample]:
    """
    Memory and RHI stat rows: ``<value> - <value> - <name>``.

    Example:
        ``100 - 50 - Physx`` -> Physx = 100
    """
    words = split_and_trim(line, "-")
    if len(words) < 3:
        return []

    value = parse_int(words[0])
    if value is None or value >= MAX_STAT_VALUE:
        return []
    return [LineSample(category, words[2], value)]


def decode_object_class_row(line: str, category: str = CATEGORY_OBJECT_CLASSES) -> list[LineSample]:
    # Class    Count      NumKB      MaxKB   ResExcKB  ResExcDedSysKB  ResExcShrSysKB  ResExcDedVidKB  ResExcShrVidKB     ResExcUnkKB
    words = split_and_trim(line, " ")
    if len(words) != 10:
        return []

    count = parse_int(words[1])
    if count is None:
        return []
    return [LineSample(category, words[0], count)]


def decode_object_row(line: str, category: str) -> list[LineSample]:
    """
    Rows of a class filtered object list. The NumKB column is scaled by
    1024 * 1024, kept as is so results stay comparable with older runs.
    """
    # Object NumKB      MaxKB ResExcKB  ResExcDedSysKB ResExcShrSysKB  ResExcDedVidKB ResExcShrVidKB     ResExcUnkKB
    words = split_and_trim(line, " ")
    if len(words) != 10:
        return []

    num_kb = parse_float(words[2])
    if num_kb is None:
        return []
    return [LineSample(category, words[1], megabytes_to_bytes(num_kb))]


def decode_persistent_level_row(line: str) -> list[LineSample]:
    words = split_and_trim(line, ",")
    if len(words) != 6:
        return []
    return [LineSample(CATEGORY_PERSISTENT, words[4], 1)]


def _decode_binned_pair(line: str, prefix: str, suffix_a: str, suffix_b: str) -> list[LineSample]:
    words = line.replace(prefix, "").split(" ")
    samples: list[LineSample] = []

    first = parse_float(words[0])
    if first is not None:
        samples.append(LineSample(CATEGORY_BINNED_MEMORY, prefix + suffix_a, int(first * 1024)))

    if len(words) > 4:
        second = parse_float(words[4])
        if second is not None:
            samples.append(LineSample(CATEGORY_BINNED_MEMORY, prefix + suffix_b, int(second * 1024)))

    return samples


def decode_binned_allocator_line(line: str) -> list[LineSample]:
    for prefix, suffix_a, suffix_b in BINNED_ALLOCATOR_PATTERNS:
        if prefix.rstrip() in line:
            return _decode_binned_pair(line, prefix, suffix_a, suffix_b)
    return []


def decode_pool_stats_row(line: str) -> list[LineSample]:
    words = split_and_trim(line, " ")
    if len(words) != 11:
        return []

    pool_id = words[0]
    columns = [
        (CATEGORY_POOL_CUR_ALLOC, f"Pool {pool_id} Cur Allocs", words[3]),
        (CATEGORY_POOL_MAX_ALLOC, f"Pool {pool_id} Max Pools", words[2]),
        (CATEGORY_POOL_MEM_USED, f"Pool {pool_id} Mem Used", words[7].replace("K", "")),
        (CATEGORY_POOL_MEM_SLACK, f"Pool {pool_id} Mem Slack", words[8].replace("K", "")),
    ]

    samples: list[LineSample] = []
    for category, subject, text in columns:
        value = parse_int(text)
        if value is not None:
            samples.append(LineSample(category, subject, value))
    return samples


def decode_render_target_row(line: str) -> list[LineSample]:
    """
    Fixed width pooled render target rows.

    Example:
        ``   0.250MB  256x 256           1mip(s) HZBResultsCPU (B8G8R8A8)``
    """
    if len(line) <= 41:
        return []

    size_mb = line[0:10].strip().replace("MB", "")
    resolution = line[11:29].strip()
    mip_count = line[30:39].strip().replace("mip(s)", "")
    name = line[39:].strip()

    value_mb = parse_float(size_mb)
    if value_mb is None:
        return []

    subject = f"{name}-{resolution}-{mip_count}"
    return [LineSample(CATEGORY_RENDER_TARGET_POOLS, subject, megabytes_to_bytes(value_mb))]


def parse_in_mem_on_disk(line: str) -> tuple[int, int] | None:
    """
    Extracts the InMem and OnDisk sizes, in bytes, from a texture total line.

    Example:
        ``Total size: InMem= 283.43 MB OnDisk= 355.34 MB Count=979``
    """
    in_mem_start = line.find("InMem= ")
    on_disk_start = line.find("OnDisk= ")
    if in_mem_start == -1 or on_disk_start == -1:
        return None

    in_mem_end = line.find(" MB", in_mem_start)
    on_disk_end = line.find(" MB", on_disk_start)
    if in_mem_end == -1 or on_disk_end == -1:
        return None

    in_mem_mb = parse_float(line[in_mem_start + len("InMem= "):in_mem_end].strip())
    on_disk_mb = parse_float(line[on_disk_start + len("OnDisk= "):on_disk_end].strip())
    if in_mem_mb is None or on_disk_mb is None:
        return None

    return megabytes_to_bytes(in_mem_mb), megabytes_to_bytes(on_disk_mb)


def _decode_texture_total(line: str) -> list[LineSample]:
    sizes = parse_in_mem_on_disk(line)
    if sizes is None:
        return []

    in_mem, on_disk = sizes
    return [
        LineSample(CATEGORY_TEXTURE_TOTAL_IN_MEM, "Total", in_mem),
        LineSample(CATEGORY_TEXTURE_TOTAL_ON_DISK, "Total", on_disk),
    ]


def _decode_texture_breakdown(line: str) -> list[LineSample]:
    # Total PF_B8G8R8A8 size: InMem= 180.20 MB OnDisk= 235.82 MB
    # Total TEXTUREGROUP_World size: InMem= 71.65 MB OnDisk= 91.71 MB
    sizes = parse_in_mem_on_disk(line)
    if sizes is None:
        return []

    end = line.find(" size: ")
    if end == -1:
        return []

    in_mem, on_disk = sizes
    subject = line[:end].replace("Total ", "").strip()
    samples: list[LineSample] = []
    if "Total TEXTUREGROUP_" in line:
        samples.append(LineSample(CATEGORY_TEXTURE_GROUP_IN_MEM, subject, in_mem))
        samples.append(LineSample(CATEGORY_TEXTURE_GROUP_ON_DISK, subject, on_disk))
    if "Total PF_" in line:
        samples.append(LineSample(CATEGORY_TEXTURE_FORMAT_IN_MEM, subject, in_mem))
        samples.append(LineSample(CATEGORY_TEXTURE_FORMAT_ON_DISK, subject, on_disk))
    return samples


def _decode_texture_row(line: str) -> list[LineSample]:
    # Cooked/OnDisk: Width x Height (Size in KB), Current/InMem: Width x Height (Size in KB), Format, LODGroup, Name, Streaming, Usage Count
    # 256x256 (43688 KB), 2048x2048 (32768 KB), PF_FloatRGBA, TEXTUREGROUP_World, /Engine/EngineMaterials/DefaultBloomKernel.DefaultBloomKernel, NO, 0
    words = split_and_trim(line, ",")
    if len(words) != 7 or words[0] == TEXTURE_LIST_HEADER:
        return []

    in_memory = parse_int(words[6])
    if in_memory is None:
        return []

    size_words = split_and_trim(words[1], " ")
    if len(size_words) != 3:
        return []

    size_kb = parse_int(size_words[1].replace("(", ""))
    if size_kb is None:
        return []

    category = CATEGORY_TEXTURE_IN_MEM if in_memory != 0 else CATEGORY_TEXTURE_ON_DISK
    return [LineSample(category, words[4], size_kb)]


def decode_texture_line(line: str) -> list[LineSample]:
    if "Total size: InMem" in line:
        return _decode_texture_total(line)
    if "Total PF_" in line or "Total TEXTUREGROUP_" in line:
        return _decode_texture_breakdown(line)
    return _decode_texture_row(line)
