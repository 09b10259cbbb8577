import logging

from flask import Flask, request, jsonify
from flask_cors import CORS
import compiler  # compile_source lives here

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # allow cross-origin requests


def token_to_dict(token):
    return {
        "type": token.type.name,
        "lexeme": token.lexeme,
        "value": token.value,
        "line": token.line,
        "column": token.column,
    }


def diagnostic_to_dict(diag):
    return {
        "line": diag.line,
        "column": diag.column,
        "kind": diag.kind,
        "message": diag.message,
    }


@app.route("/compile", methods=["POST"])
def compile_code():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"errors": ["request body must be a JSON object"]}), 400
    code = data.get("code")
    if not isinstance(code, str):
        return jsonify({"errors": ["request body must contain a 'code' string"]}), 400
    try:
        result = compiler.compile_source(code, run=bool(data.get("run", False)))

        # Process tokens to match terminal format
        processed_tokens = [token_to_dict(t) for t in result['tokens'] if t.type.name != 'EOF']

        symbols = [
            {"scope": e.scope, "name": e.name, "type": str(e.type)}
            for e in result['symbols']
        ]

        response = {
            "tokens": processed_tokens,
            "symbols": symbols,
            "tac": [str(t) for t in result['tac']],
            "output": result['output'],
            "errors": result['errors'],
            "diagnostics": [diagnostic_to_dict(d) for d in result['diagnostics']],
        }
        return jsonify(response)
    except Exception as e:
        logger.exception("compile request failed")
        return jsonify({
            "tokens": [],
            "symbols": [],
            "tac": [],
            "output": [],
            "errors": [f"Unexpected error: {str(e)}"],
            "diagnostics": [],
        }), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
