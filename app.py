from flask import Flask, request, jsonify, render_template
import json
import logging
import os

from core import generate_metrics, normalize_handle
from errors import VibeError
from profiles import ProfileLookup, NEYNAR_API_BASE

# =================================================
# APP SETUP
# =================================================

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# public functions domain, used for frame callbacks
app.config["FUNCTIONS_BASE_URL"] = os.environ.get(
    "FUNCTIONS_BASE_URL", "https://yatrugjplwgsqnehumcu.functions.supabase.co"
)
app.config["FRAME_IMAGE_URL"] = os.environ.get(
    "FRAME_IMAGE_URL", "https://lovable.dev/opengraph-image-p98pqg.png"
)
app.config["NEYNAR_API_KEY"] = os.environ.get("NEYNAR_API_KEY")
app.config["NEYNAR_API_BASE"] = NEYNAR_API_BASE
app.config["NEYNAR_TIMEOUT"] = float(os.environ.get("NEYNAR_TIMEOUT", "10"))
# tests swap in a fake requests session here
app.config["NEYNAR_SESSION"] = None

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

DEFAULT_SUBTITLE = "Drop your handle to scan your Main Character Energy"


@app.after_request
def add_cors(response):
    response.headers.update(CORS_HEADERS)
    return response


@app.errorhandler(405)
def method_not_allowed(e):
    return "Method not allowed", 405


def preflight():
    return app.response_class(b"", status=200)


# =================================================
# FRAME RESPONDER
# =================================================

def frame_subtitle(normalized):
    if not normalized:
        return DEFAULT_SUBTITLE

    m = generate_metrics(normalized, variant="frame")
    return (
        f"@{normalized}: MC {m.main_character} · "
        f"NPC {m.npc_energy} · Armor {m.plot_armor}"
    )


def build_frame_html(handle, image_url, app_url):
    normalized = normalize_handle(handle)
    return render_template(
        "frame.html",
        subtitle=frame_subtitle(normalized),
        image_url=image_url,
        state=json.dumps({"handle": normalized}),
        post_url=f"{app_url}/frame-main-character",
    )


def frame_input_text():
    body = request.get_json(silent=True, force=True)
    if not isinstance(body, dict):
        return ""

    untrusted = body.get("untrustedData")
    if not isinstance(untrusted, dict):
        return ""

    text = untrusted.get("inputText")
    return str(text) if text else ""


@app.route("/frame-main-character", methods=["GET", "POST", "OPTIONS"])
def frame_main_character():
    if request.method == "OPTIONS":
        return preflight()

    # HEAD rides along with GET automatically
    if request.method == "HEAD":
        return method_not_allowed(None)

    try:
        handle = frame_input_text() if request.method == "POST" else ""
        html = build_frame_html(
            handle,
            image_url=app.config["FRAME_IMAGE_URL"],
            app_url=app.config["FUNCTIONS_BASE_URL"],
        )
        return html, 200, {"Content-Type": "text/html; charset=utf-8"}
    except Exception:
        logger.exception("Error in frame-main-character")
        return "Internal Server Error", 500


# =================================================
# PROFILE LOOKUP PROXY
# =================================================

def profile_lookup():
    return ProfileLookup(
        app.config["NEYNAR_API_KEY"],
        base_url=app.config["NEYNAR_API_BASE"],
        session=app.config["NEYNAR_SESSION"],
        timeout=app.config["NEYNAR_TIMEOUT"],
    )


@app.route("/get-farcaster-profile", methods=["POST", "OPTIONS"])
def get_farcaster_profile():
    if request.method == "OPTIONS":
        return preflight()

    data = request.get_json(silent=True, force=True)
    username = data.get("username") if isinstance(data, dict) else None

    try:
        return jsonify(profile_lookup().lookup(username))
    except VibeError as e:
        return jsonify({"error": e.message}), e.status
    except Exception as e:
        logger.exception("Error in get-farcaster-profile")
        return jsonify({"error": str(e) or "Unknown error"}), 500


# =================================================
# HEALTH
# =================================================

@app.route("/")
def ok():
    return "OK"
