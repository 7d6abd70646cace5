# showreel/routes/admin_project.py
from flask import Blueprint, jsonify

from showreel.db.session import get_session
from showreel.errors import ValidationError
from showreel.extensions import admin_limit, get_cache_policy, get_media_store, upload_limit
from showreel.routes.common import frame_time, json_body, parse, request_payload, uploaded_file
from showreel.routes.guards import admin_required, current_user_id
from showreel.routes.project import serialize
from showreel.schemas.dto.project_dto import ProjectDTO
from showreel.schemas.project import ProjectCreate, ProjectUpdate, ReorderRequest
from showreel.services.project_service import ProjectService

admin_project_bp = Blueprint('admin_project', __name__, url_prefix='/api/admin')


def _service(db) -> ProjectService:
    return ProjectService(db, media_store=get_media_store(), cache_policy=get_cache_policy())


def _project_json(service: ProjectService, project):
    return ProjectDTO.from_orm_model(project, display_order=service.display_order_of(project)).to_json()


@admin_project_bp.route('/projects', methods=['GET'])
@admin_required
def list_projects():
    """全部项目（含草稿），按展示顺序"""
    db = get_session()
    try:
        return jsonify(serialize(_service(db).list_all()))
    finally:
        db.close()


@admin_project_bp.route('/projects', methods=['POST'])
@admin_limit
@admin_required
def create_project():
    """创建项目；multipart 时可附带 video / thumbnail / frameTime"""
    data = parse(ProjectCreate, request_payload())
    video = uploaded_file('video')
    thumbnail = uploaded_file('thumbnail')

    db = get_session()
    try:
        service = _service(db)
        project = service.create_project(
            data,
            video=video,
            thumbnail=thumbnail,
            frame_time=frame_time(),
            operator_id=current_user_id(),
        )
        return jsonify(_project_json(service, project)), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@admin_project_bp.route('/projects/<int:project_id>', methods=['GET'])
@admin_required
def get_project(project_id):
    db = get_session()
    try:
        project, rank = _service(db).get_project(project_id)
        return jsonify(ProjectDTO.from_orm_model(project, display_order=rank).to_json())
    finally:
        db.close()


@admin_project_bp.route('/projects/<int:project_id>', methods=['PATCH', 'PUT'])
@admin_limit
@admin_required
def update_project(project_id):
    changes = parse(ProjectUpdate, request_payload())

    db = get_session()
    try:
        service = _service(db)
        project = service.update_project(project_id, changes, operator_id=current_user_id())
        return jsonify(_project_json(service, project))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@admin_project_bp.route('/projects/<int:project_id>', methods=['DELETE'])
@admin_limit
@admin_required
def delete_project(project_id):
    db = get_session()
    try:
        _service(db).delete_project(project_id, operator_id=current_user_id())
        return '', 204
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@admin_project_bp.route('/projects/reorder', methods=['POST'])
@admin_limit
@admin_required
def reorder_projects():
    """拖拽排序：{updates: [{id, displayOrder, version?}]}，整批原子生效"""
    body = json_body()
    if not isinstance(body.get('updates'), list):
        raise ValidationError("updates must be an array", field="updates")
    batch = parse(ReorderRequest, body)

    db = get_session()
    try:
        service = _service(db)
        service.reorder_projects(batch.updates)
        return jsonify({"updated": len(batch.updates), "projects": serialize(service.list_all())})
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@admin_project_bp.route('/projects/<int:project_id>/video', methods=['POST'])
@admin_limit
@upload_limit
@admin_required
def replace_video(project_id):
    """替换视频并发布"""
    video = uploaded_file('video')
    if video is None:
        raise ValidationError("A video file is required", field="video")
    thumbnail = uploaded_file('thumbnail')

    db = get_session()
    try:
        service = _service(db)
        project = service.attach_video(
            project_id,
            video,
            thumbnail=thumbnail,
            frame_time=frame_time(),
            publish=True,
            operator_id=current_user_id(),
        )
        return jsonify(_project_json(service, project))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@admin_project_bp.route('/suggestions', methods=['GET'])
@admin_required
def suggestions():
    db = get_session()
    try:
        return jsonify(_service(db).suggestions())
    finally:
        db.close()
