# showreel/routes/project.py
"""Public, read-only project endpoints. Served from the TTL cache."""
from flask import Blueprint, jsonify, request

from showreel.db.session import get_session
from showreel.errors import NotFoundError
from showreel.extensions import get_cache
from showreel.schemas.dto.project_dto import PortfolioStatsDTO, ProjectDTO
from showreel.services.cache_service import CacheKeys, CacheTTL
from showreel.services.project_service import ProjectService

project_bp = Blueprint('project', __name__, url_prefix='/api')


def serialize(ranked):
    return [ProjectDTO.from_orm_model(p, display_order=rank).to_json() for p, rank in ranked]


@project_bp.route('/projects', methods=['GET'])
def list_projects():
    """已发布项目，按 displayOrder 排序；可选 ?category= 筛选"""
    category = request.args.get('category', '').strip()

    db = get_session()
    try:
        service = ProjectService(db)
        if category:
            # 带筛选的查询不走缓存
            return jsonify(serialize(service.list_published(category=category)))
        payload = get_cache().get_or_load(
            CacheKeys.PUBLISHED_PROJECTS,
            CacheTTL.LIST,
            lambda: serialize(service.list_published()),
        )
        return jsonify(payload)
    finally:
        db.close()


@project_bp.route('/projects/featured', methods=['GET'])
def list_featured():
    db = get_session()
    try:
        service = ProjectService(db)
        payload = get_cache().get_or_load(
            CacheKeys.FEATURED_PROJECTS,
            CacheTTL.LIST,
            lambda: serialize(service.list_featured()),
        )
        return jsonify(payload)
    finally:
        db.close()


@project_bp.route('/projects/<int:project_id>', methods=['GET'])
def get_project(project_id):
    db = get_session()
    try:
        service = ProjectService(db)

        def load():
            found = service.get_published(project_id)
            if found is None:
                return None
            project, rank = found
            return ProjectDTO.from_orm_model(project, display_order=rank).to_json()

        payload = get_cache().get_or_load(CacheKeys.project(project_id), CacheTTL.PROJECT, load)
        if payload is None:
            raise NotFoundError(f"Project {project_id} not found")
        return jsonify(payload)
    finally:
        db.close()


@project_bp.route('/stats', methods=['GET'])
def portfolio_stats():
    db = get_session()
    try:
        service = ProjectService(db)

        def load():
            stats = service.portfolio_stats()
            latest = stats["latest_project"]
            return PortfolioStatsDTO(
                total_projects=stats["total_projects"],
                featured_projects=stats["featured_projects"],
                categories=stats["categories"],
                latest_project=ProjectDTO.from_orm_model(latest[0], display_order=latest[1]) if latest else None,
            ).to_json()

        return jsonify(get_cache().get_or_load(CacheKeys.PORTFOLIO_STATS, CacheTTL.STATS, load))
    finally:
        db.close()
