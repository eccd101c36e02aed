#!/usr/bin/env python3
"""
Flask JSON API for the ftrace timeline builder.
Provides REST endpoints for building timelines from function_graph traces,
resolving functions to kernel source definitions and merging the results.
"""

from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename
import os
import tempfile
from ftrace_timeline import ResolverConfig, TimelineBuilder
from ftrace_timeline.core.types import FunctionLocation
from ftrace_timeline.processors import LocationMerger, ParallelResolver
from ftrace_timeline.web import prepare_function_db, summarize_resolution

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 500 * 1024 * 1024
app.config['UPLOAD_FOLDER'] = tempfile.gettempdir()
app.config['SOURCE_ROOT'] = os.environ.get('KERNEL_SRC', '')
app.config['RESOLVE_TIMEOUT'] = float(os.environ.get('RESOLVE_TIMEOUT', '10'))

ALLOWED_EXTENSIONS = {'txt', 'log', 'trace'}


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


@app.route('/api/health')
def health():
    """Health check with the configured source root."""
    return jsonify({
        'status': 'ok',
        'source_root': app.config['SOURCE_ROOT'] or None,
    })


@app.route('/api/timeline', methods=['POST'])
def timeline_api():
    """
    API endpoint to build a timeline from a trace text file.
    Accepts: multipart/form-data with fields:
      - 'file': function_graph trace text
      - 'kernel_version': kernel release of the capture (optional)
    Returns: JSON timeline document; 'status' is 'no_data' when the trace
    held no usable lines
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']

    if not file.filename:
        return jsonify({'error': 'No file selected'}), 400

    if not allowed_file(file.filename):
        return jsonify({'error': 'Invalid file type. Only .txt, .log and .trace files are allowed.'}), 400

    kernel_version = request.form.get('kernel_version', 'unknown')

    try:
        filename = secure_filename(file.filename)
        filepath = os.path.join(app.config['UPLOAD_FOLDER'], filename)
        file.save(filepath)

        builder = TimelineBuilder()
        builder.process_trace_file(filepath)

        os.remove(filepath)

        return jsonify(builder.to_document({
            'kernel_version': kernel_version,
            'source': filename,
        }))

    except Exception as e:
        return jsonify({'error': str(e)}), 500


@app.route('/api/resolve', methods=['POST'])
def resolve_api():
    """
    API endpoint to resolve function names against the configured source tree.
    Accepts: JSON body {"functions": [...], "timeout": seconds (optional)}
    Returns: JSON with the function database and resolution counts
    """
    payload = request.get_json(silent=True) or {}
    functions = payload.get('functions')

    if not isinstance(functions, list) or not all(isinstance(f, str) for f in functions):
        return jsonify({'error': "'functions' must be a list of names"}), 400

    source_root = app.config['SOURCE_ROOT']
    if not source_root or not os.path.isdir(source_root):
        return jsonify({'error': 'No kernel source tree configured (set KERNEL_SRC)'}), 400

    try:
        timeout = float(payload.get('timeout', app.config['RESOLVE_TIMEOUT']))
    except (TypeError, ValueError):
        return jsonify({'error': "'timeout' must be a number of seconds"}), 400
    if timeout < 0:
        return jsonify({'error': "'timeout' must not be negative"}), 400

    try:
        config = ResolverConfig(
            timeout_seconds=timeout,
            num_workers=1,
        )
        locations = ParallelResolver(source_root, config).resolve_all(functions)
        return jsonify({
            'functions': prepare_function_db(locations),
            'resolution': summarize_resolution(locations),
        })

    except Exception as e:
        return jsonify({'error': str(e)}), 500


@app.route('/api/merge', methods=['POST'])
def merge_api():
    """
    API endpoint to merge a function database into a timeline document.
    Accepts: JSON body {"timeline": <timeline document>, "locations": <function db>}
    Returns: the merged timeline document
    """
    payload = request.get_json(silent=True) or {}
    document = payload.get('timeline')
    records = payload.get('locations')

    if not isinstance(document, dict) or not isinstance(document.get('timeline'), list):
        return jsonify({'error': "'timeline' must be a timeline document"}), 400
    if not isinstance(records, dict):
        return jsonify({'error': "'locations' must be a function database"}), 400

    try:
        locations = {name: FunctionLocation.from_dict(name, record) for name, record in records.items()}
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid location record: {e}'}), 400

    return jsonify(LocationMerger.merge_document(document, locations))


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5001)
