# showreel/routes/file.py
"""Standalone uploads and VideoUpload records."""
from flask import Blueprint, jsonify, request

from showreel.db.session import get_session
from showreel.errors import ValidationError
from showreel.extensions import admin_limit, get_cache_policy, get_media_store, upload_limit
from showreel.routes.common import frame_time, json_body, optional_int_arg, parse, uploaded_file
from showreel.routes.guards import admin_required, current_user_id
from showreel.schemas.content import VideoUploadUpdate
from showreel.schemas.dto.project_dto import ProjectDTO
from showreel.schemas.dto.video_upload_dto import VideoUploadDTO
from showreel.services.project_service import ProjectService

file_bp = Blueprint('file', __name__, url_prefix='/api/admin')


def _service(db) -> ProjectService:
    return ProjectService(db, media_store=get_media_store(), cache_policy=get_cache_policy())


@file_bp.route('/upload', methods=['POST'])
@admin_limit
@upload_limit
@admin_required
def upload_video():
    '''
    上传视频；带 projectId 时绑定到该项目（草稿 -> processing），否则只记录上传
    '''
    video = uploaded_file('video')
    if video is None:
        raise ValidationError("A video file is required", field="video")
    thumbnail = uploaded_file('thumbnail')
    project_id = optional_int_arg(request.form, 'projectId')
    description = request.form.get('description') or None

    db = get_session()
    try:
        service = _service(db)
        if project_id is None:
            upload = service.upload_unbound_video(
                video,
                thumbnail=thumbnail,
                frame_time=frame_time(),
                description=description,
                operator_id=current_user_id(),
            )
            return jsonify({"upload": VideoUploadDTO.from_orm_model(upload).to_json(), "project": None}), 201

        project = service.attach_video(
            project_id,
            video,
            thumbnail=thumbnail,
            frame_time=frame_time(),
            publish=False,
            description=description,
            operator_id=current_user_id(),
        )
        upload = service.list_uploads(project_id)[0]
        return jsonify({
            "upload": VideoUploadDTO.from_orm_model(upload).to_json(),
            "project": ProjectDTO.from_orm_model(project, display_order=service.display_order_of(project)).to_json(),
        }), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@file_bp.route('/uploads', methods=['GET'])
@admin_required
def list_uploads():
    project_id = optional_int_arg(request.args, 'projectId')

    db = get_session()
    try:
        uploads = _service(db).list_uploads(project_id)
        return jsonify([VideoUploadDTO.from_orm_model(u).to_json() for u in uploads])
    finally:
        db.close()


@file_bp.route('/uploads/<int:upload_id>', methods=['PATCH'])
@admin_limit
@admin_required
def update_upload(upload_id):
    data = parse(VideoUploadUpdate, json_body())

    db = get_session()
    try:
        upload = _service(db).update_upload(upload_id, description=data.description)
        return jsonify(VideoUploadDTO.from_orm_model(upload).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
