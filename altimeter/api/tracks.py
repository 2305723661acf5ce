"""
Track API endpoints.

Provides endpoints for:
- GET    /api/tracks                 - List tracks, newest first
- GET    /api/tracks/<id>            - Single track
- GET    /api/tracks/<id>/points     - Recorded points in time order
- GET    /api/tracks/<id>/statistics - Aggregate statistics
- GET    /api/tracks/<id>/timeline   - Altitude/speed series against elapsed time
                                     (?at=<seconds> also selects the nearest sample)
- GET    /api/tracks/<id>/gpx        - Download as GPX
- POST   /api/tracks/<id>/export     - Write GPX into the export directory
- DELETE /api/tracks/<id>            - Delete track and points
"""

import logging
import math
import time
from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, jsonify, request

from altimeter.analytics import build_timeline, compute_statistics, sample_at
from altimeter.export import ExportError, export_file_name, gpx_string, write_gpx
from altimeter.export.gpx import exportable_points
from altimeter.track_store import StorageError

logger = logging.getLogger(__name__)

tracks_bp = Blueprint('tracks', __name__, url_prefix='/api/tracks')


def _store():
    return current_app.config['TRACK_STORE']


def _not_found(track_id: int):
    return jsonify({'error': f'Track {track_id} not found'}), 404


@tracks_bp.route('', methods=['GET'])
def list_tracks():
    """List all tracks; response includes query timing."""
    start_time = time.perf_counter()

    tracks = _store().list_tracks()
    recorder = current_app.config.get('RECORDER')
    recording_id = recorder.track_id if recorder is not None else None

    track_dicts = []
    for track in tracks:
        track_dict = track.to_dict()
        track_dict['recording'] = track.id == recording_id
        track_dicts.append(track_dict)

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'tracks': track_dicts,
        'count': len(track_dicts),
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@tracks_bp.route('/<int:track_id>', methods=['GET'])
def get_track(track_id: int):
    track = _store().get_track(track_id)
    if track is None:
        return _not_found(track_id)
    return jsonify(track.to_dict())


@tracks_bp.route('/<int:track_id>/points', methods=['GET'])
def get_points(track_id: int):
    store = _store()
    if store.get_track(track_id) is None:
        return _not_found(track_id)

    points = store.points_for(track_id)
    return jsonify({
        'track_id': track_id,
        'points': [p.to_dict() for p in points],
        'count': len(points),
    })


@tracks_bp.route('/<int:track_id>/statistics', methods=['GET'])
def get_statistics(track_id: int):
    store = _store()
    track = store.get_track(track_id)
    if track is None:
        return _not_found(track_id)

    stats = compute_statistics(store.points_for(track_id), track.start_time, track.end_time)
    return jsonify({'track_id': track_id, 'statistics': stats.to_dict()})


@tracks_bp.route('/<int:track_id>/timeline', methods=['GET'])
def get_timeline(track_id: int):
    store = _store()
    track = store.get_track(track_id)
    if track is None:
        return _not_found(track_id)

    raw_at = request.args.get('at')
    at = None
    if raw_at is not None:
        try:
            at = float(raw_at)
        except ValueError:
            at = math.nan
        if not math.isfinite(at):
            return jsonify({'error': f'Invalid elapsed time: {raw_at}'}), 400

    timeline = build_timeline(store.points_for(track_id), track.start_time)
    response = {
        'track_id': track_id,
        'samples': [s.to_dict() for s in timeline],
    }

    if at is not None:
        selected = sample_at(timeline, at)
        response['selected'] = None if selected is None else selected.to_dict()

    return jsonify(response)


@tracks_bp.route('/<int:track_id>/gpx', methods=['GET'])
def download_gpx(track_id: int):
    store = _store()
    track = store.get_track(track_id)
    if track is None:
        return _not_found(track_id)

    points = store.points_for(track_id)
    if not exportable_points(points):
        return jsonify({'error': 'Track has no points with coordinates'}), 422

    return Response(
        gpx_string(track, points),
        mimetype='application/gpx+xml',
        headers={'Content-Disposition': f'attachment; filename="{export_file_name(track)}"'},
    )


@tracks_bp.route('/<int:track_id>/export', methods=['POST'])
def export_gpx(track_id: int):
    store = _store()
    track = store.get_track(track_id)
    if track is None:
        return _not_found(track_id)

    try:
        path = write_gpx(track, store.points_for(track_id), current_app.config['EXPORT_DIR'])
    except ExportError as e:
        return jsonify({'error': str(e)}), 422

    return jsonify({'track_id': track_id, 'path': str(path)}), 201


@tracks_bp.route('/<int:track_id>', methods=['DELETE'])
def delete_track(track_id: int):
    recorder = current_app.config.get('RECORDER')
    if recorder is not None and recorder.track_id == track_id:
        return jsonify({'error': 'Track is being recorded'}), 409

    try:
        deleted = _store().delete_track(track_id)
    except StorageError as e:
        logger.error(f'Delete failed: {e}')
        return jsonify({'error': 'Could not delete track'}), 503

    if not deleted:
        return _not_found(track_id)
    return jsonify({'deleted': track_id})
