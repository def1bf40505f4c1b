import logging
from datetime import datetime
from pathlib import Path

from flask import Flask, jsonify, request

from plyloader.errors import PlyError
from plyloader.mesh import process
from plyloader.parser import parse_document

app = Flask(__name__)

HOST = "0.0.0.0"
PORT = 8080
LOG_FILE = Path("logs/server.log")
INSPECT_ROOT = Path(".")
MAX_PAYLOAD_BYTES = 256 * 1024 * 1024

logger = logging.getLogger(__name__)


def _log_line(message: str):
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{timestamp}] {message}"
    logger.info(line)
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(line + "\n")


def _describe(data: bytes, include_buffers: bool):
    header, mesh = parse_document(data)
    body = {
        "header": header.summary(),
        "counts": {
            "positions": len(mesh.positions),
            "normals": len(mesh.normals),
            "texcoords": len(mesh.texcoords),
            "colors": len(mesh.colors),
            "indices": len(mesh.indices),
        },
    }
    if include_buffers:
        buffers = process(mesh)
        body["buffers"] = {
            name: (arr.tolist() if arr is not None else None)
            for name, arr in buffers._asdict().items()
        }
    return body


@app.route("/api/parse", methods=["POST"])
def parse_payload():
    data = request.get_data(cache=False)
    if not data:
        return jsonify({"error": "request body must contain a PLY file"}), 400
    if len(data) > MAX_PAYLOAD_BYTES:
        return jsonify({"error": f"payload exceeds {MAX_PAYLOAD_BYTES} bytes"}), 413

    include_buffers = request.args.get("buffers", "").lower() in ("1", "true", "yes")
    try:
        body = _describe(data, include_buffers)
    except PlyError as e:
        _log_line(f"[ERROR] Rejected PLY upload ({len(data)} bytes): {e}")
        return jsonify({"error": str(e), "kind": type(e).__name__}), 400

    _log_line(f"[INFO] Parsed PLY upload ({len(data)} bytes)")
    return jsonify(body)


@app.route("/api/inspect")
def inspect():
    path = request.args.get("path")
    if not path:
        return jsonify({"error": "path parameter is required"}), 400

    p = Path(path).resolve()
    root = INSPECT_ROOT.resolve()
    if root not in p.parents and p != root:
        return jsonify({"error": "invalid path"}), 400

    try:
        data = p.read_bytes()
    except OSError as e:
        _log_line(f"[WARNING] Cannot read {p}: {e}")
        return jsonify({"error": f"file not found: {path}"}), 404

    try:
        body = _describe(data, include_buffers=False)
    except PlyError as e:
        _log_line(f"[ERROR] Failed parsing {p}: {e}")
        return jsonify({"error": str(e), "kind": type(e).__name__}), 400

    body["path"] = str(p)
    return jsonify(body)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host=HOST, port=PORT, debug=True)
