from typing import NamedTuple, Optional
from urllib.parse import quote

from errors import ValidationError

# =========================
# CONSTANTS
# =========================

MASK_32 = 0xFFFFFFFF
MAX_HANDLE_LEN = 32

AVATAR_BASE = "https://api.dicebear.com/9.x/thumbs/svg"
COMPOSE_BASE = "https://warpcast.com/~/compose"

# same safe set as JS encodeURIComponent
URI_SAFE = "-_.!~*'()"

CAPTIONS = [
    "Plot twist: you were the main character the whole time.",
    "Side quests completed. Main quest energy unlocked.",
    "You give \"I know the author\" energy.",
    "NPCs are just background characters in your highlight reel.",
    "Somewhere, a writer is adding you to season two.",
]

ARMOR_LEVELS = ("Low", "Medium", "High")


class EnergyResult(NamedTuple):
    main_character: int
    npc_energy: int
    plot_armor: str
    caption: str
    fid: int
    avatar_url: str
    display_name: Optional[str] = None


# =========================
# HASHING
# =========================

def hash_handle(text):
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & MASK_32
    return h


def hash_handle_abs(text):
    """Shift-subtract hash: (h << 5) - h + c, kept as signed 32-bit, then abs."""
    h = hash_handle(text)
    if h & 0x80000000:
        h -= 0x100000000
    return abs(h)


# =========================
# VARIANT POLICIES
# =========================

def clamp(lo, hi, v):
    return max(lo, min(hi, v))


def npc_wobble(h, mc):
    return clamp(0, 100, 100 - mc + ((h >> 3) % 11) - 5)


def npc_flipped(h, mc):
    return 100 - (h % 41)


def armor_threshold(h):
    seed = (h >> 7) % 100
    if seed > 70:
        return "High"
    if seed > 40:
        return "Medium"
    return "Low"


def armor_modulo(h):
    return ARMOR_LEVELS[h % len(ARMOR_LEVELS)]


# scanner: interactive page, frame: feed frame responder
VARIANTS = {
    "scanner": {
        "fallback": "maincharacter",
        "hash": hash_handle,
        "npc": npc_wobble,
        "armor": armor_threshold,
    },
    "frame": {
        "fallback": "anon",
        "hash": hash_handle_abs,
        "npc": npc_flipped,
        "armor": armor_modulo,
    },
}

DEFAULT_VARIANT = "scanner"


# =========================
# METRICS ENGINE
# =========================

def strip_handle(raw):
    # drop surrounding whitespace and every leading @, keeping case
    text = (raw or "").strip()
    while text.startswith("@"):
        text = text[1:].strip()
    return text


def normalize_handle(raw):
    return strip_handle(raw).lower()


def avatar_url_for(seed):
    return f"{AVATAR_BASE}?seed={quote(seed, safe=URI_SAFE)}"


def generate_metrics(raw, variant=DEFAULT_VARIANT):
    try:
        policy = VARIANTS[variant]
    except KeyError:
        raise ValueError(f"Unknown metrics variant: {variant!r}")

    base = normalize_handle(raw) or policy["fallback"]
    h = policy["hash"](base)

    mc = (h % 51) + 50

    return EnergyResult(
        main_character=mc,
        npc_energy=policy["npc"](h, mc),
        plot_armor=policy["armor"](h),
        caption=CAPTIONS[h % len(CAPTIONS)],
        fid=(h % 900000) + 10000,
        avatar_url=avatar_url_for(base),
    )


def apply_profile(result, profile):
    """Swap the decorative fid/avatar for the real ones from a Neynar profile."""
    if not profile:
        return result

    changes = {}
    if profile.get("fid") is not None:
        changes["fid"] = int(profile["fid"])
    if profile.get("pfp_url"):
        changes["avatar_url"] = profile["pfp_url"]
    if profile.get("display_name"):
        changes["display_name"] = profile["display_name"]

    return result._replace(**changes)


# =========================
# INPUT + SHARING
# =========================

def validate_handle(raw):
    name = normalize_handle(raw)
    if not name:
        raise ValidationError("Handle required")
    if len(name) > MAX_HANDLE_LEN:
        raise ValidationError("That handle seems too long")

    # keep the user's casing for display
    return "@" + strip_handle(raw)


def build_share_text(handle, result):
    handle = handle.strip()
    username = handle if handle.startswith("@") else f"@{handle}"

    return "\n".join([
        f"Main Character Energy scan for {username}",
        f"Main Character Energy: {result.main_character}%",
        f"NPC Energy: {result.npc_energy}%",
        f"Plot Armor: {result.plot_armor}",
        "",
        "Generated on Main Character Energy",
    ])


def build_compose_url(text):
    return f"{COMPOSE_BASE}?text={quote(text, safe=URI_SAFE)}"
