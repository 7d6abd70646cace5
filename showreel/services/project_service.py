# showreel/services/project_service.py
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from showreel.db.enums import MediaKind, ProjectStatus, UploadStatus
from showreel.errors import ConflictError, NotFoundError, ValidationError
from showreel.logger import get_logger
from showreel.models.category import Category
from showreel.models.project import Project
from showreel.models.video_upload import VideoUpload
from showreel.schemas.project import ProjectCreate, ProjectUpdate, ReorderItem
from showreel.services.cache_service import CacheInvalidationPolicy, CacheOp
from showreel.services.media_store import MediaStore, UploadResult
from showreel.services.ordering import (
    head_key,
    insertion_neighbours,
    key_between,
    key_for_rank,
    merge_placements,
    rank_map,
)
from showreel.services.upload_validation import UploadedFile, validate_image, validate_video

logger = get_logger(__name__)

RankedProject = Tuple[Project, int]

_EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "client",
    "agency",
    "role",
    "year",
    "duration",
    "featured",
    "status",
)


class ProjectService:
    """
    Ordering & status engine for portfolio projects.

    规则：
    - status=published 必须与非空 video_url 在同一次写入中成立
    - 新项目总是排在最前（头插，O(1)）
    - 批量排序在一个事务里完成，先校验全部 id 与版本再写入
    - 每次写入都校验 version（乐观锁），冲突返回 409

    Mutations commit on their own: cache invalidation has to follow a
    successful commit, and the create path needs a durable draft row before
    it talks to the media store.
    """

    def __init__(
        self,
        db: Session,
        media_store: Optional[MediaStore] = None,
        cache_policy: Optional[CacheInvalidationPolicy] = None,
    ):
        self.db = db
        self.media_store = media_store
        self.cache_policy = cache_policy

    # ======================================================
    # Internal helpers
    # ======================================================

    def _invalidate(self, op: CacheOp, project_id: Optional[int] = None) -> None:
        if self.cache_policy is not None:
            self.cache_policy.invalidate(op, project_id=project_id)

    def _ordered_stmt(self):
        return select(Project).order_by(Project.sort_key.asc(), Project.id.asc())

    def _get_or_404(self, project_id: int) -> Project:
        project = self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    def _check_version(self, project: Project, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != project.version:
            raise ConflictError(
                f"Project {project.id} was modified by someone else; reload and try again",
                details={"id": project.id, "expectedVersion": expected_version, "currentVersion": project.version},
            )

    def _commit(self, what: str) -> None:
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning(f"Stale write rejected during {what}: {exc}")
            raise ConflictError(f"Concurrent modification detected during {what}; reload and try again") from exc

    def _require_media_store(self) -> MediaStore:
        if self.media_store is None:
            raise RuntimeError("ProjectService needs a media store for uploads")
        return self.media_store

    # ======================================================
    # Ordering
    # ======================================================

    def _rebalance(self, ordered: Optional[List[Project]] = None) -> None:
        '''
        整体重排：sort_key = rank * ORDER_GAP
        :param ordered: 目标顺序；缺省为当前顺序
        '''
        if ordered is None:
            ordered = list(self.db.scalars(self._ordered_stmt()))
        for rank, project in enumerate(ordered):
            project.sort_key = key_for_rank(rank)
        self.db.flush()
        logger.info(f"Rebalanced ordering keys for {len(ordered)} projects")

    def _next_head_key(self) -> int:
        current_min = self.db.scalar(select(func.min(Project.sort_key)))
        key = head_key(current_min)
        if key is None:
            self._rebalance()
            key = head_key(self.db.scalar(select(func.min(Project.sort_key))))
        return key

    def _move_to_rank(self, project: Project, rank: int) -> None:
        others = [p for p in self.db.scalars(self._ordered_stmt()) if p.id != project.id]
        lower, upper = insertion_neighbours([p.sort_key for p in others], rank)
        key = key_between(lower, upper)
        if key is None:
            rank = max(0, min(rank, len(others)))
            self._rebalance(others[:rank] + [project] + others[rank:])
            return
        project.sort_key = key

    def display_orders(self) -> Dict[int, int]:
        """id -> displayOrder (0-based rank over every project)."""
        ids = self.db.scalars(select(Project.id).order_by(Project.sort_key.asc(), Project.id.asc()))
        return rank_map(ids)

    def display_order_of(self, project: Project) -> int:
        return self.db.scalar(
            select(func.count(Project.id)).where(
                or_(
                    Project.sort_key < project.sort_key,
                    and_(Project.sort_key == project.sort_key, Project.id < project.id),
                )
            )
        )

    def _ranked(self, projects: List[Project]) -> List[RankedProject]:
        ranks = self.display_orders()
        return [(p, ranks[p.id]) for p in projects]

    # ======================================================
    # Media helpers
    # ======================================================

    def _push_media(
        self,
        video: UploadedFile,
        thumbnail: Optional[UploadedFile],
        frame_time: float,
        uploaded: List[Tuple[str, MediaKind]],
    ) -> Tuple[UploadResult, str, Optional[str]]:
        '''
        上传视频，上传或派生缩略图
        :param uploaded: 已成功上传的 (content_id, kind)，失败时供调用方清理
        :return: (视频结果, 缩略图 URL, 上传缩略图的 content_id 或 None)
        '''
        store = self._require_media_store()
        video_result = store.upload_video(video.data, filename=video.filename)
        uploaded.append((video_result.content_id, MediaKind.video))

        if thumbnail is not None:
            thumb_result = store.upload_image(thumbnail.data, filename=thumbnail.filename)
            uploaded.append((thumb_result.content_id, MediaKind.image))
            return video_result, thumb_result.url, thumb_result.content_id

        return video_result, store.derive_thumbnail(video_result.content_id, frame_time), None

    def _discard_media(self, refs: List[Tuple[str, MediaKind]]) -> None:
        if not refs or self.media_store is None:
            return
        for content_id, kind in refs:
            if not self.media_store.delete_media(content_id, kind):
                logger.warning(f"Orphaned {kind.value} left in media store: {content_id}")

    def _media_refs(self, project: Project, uploads: List[VideoUpload]) -> List[Tuple[str, MediaKind]]:
        refs: List[Tuple[str, MediaKind]] = []
        if self.media_store is not None:
            video_id = self.media_store.content_id_from_url(project.video_url)
            if video_id:
                refs.append((video_id, MediaKind.video))
        for upload in uploads:
            if upload.upload_status == UploadStatus.completed and upload.file_name:
                refs.append((upload.file_name, MediaKind.video))
            if upload.thumbnail_file_name:
                refs.append((upload.thumbnail_file_name, MediaKind.image))
        # 去重并保持顺序
        return list(dict.fromkeys(refs))

    def _uploads_of(self, project_id: int) -> List[VideoUpload]:
        return list(self.db.scalars(
            select(VideoUpload)
            .where(VideoUpload.project_id == project_id)
            .order_by(VideoUpload.created_at.desc(), VideoUpload.id.desc())
        ))

    def _start_upload(
        self,
        *,
        project_id: Optional[int],
        video: UploadedFile,
        operator_id: Optional[str],
        description: Optional[str] = None,
    ) -> VideoUpload:
        upload = VideoUpload(
            project_id=project_id,
            original_file_name=video.filename,
            file_name=video.filename,
            file_size=video.size,
            mime_type=video.mimetype,
            uploaded_by=operator_id,
            description=description,
            upload_status=UploadStatus.uploading,
        )
        self.db.add(upload)
        self.db.commit()
        return upload

    @staticmethod
    def _complete_upload(upload: VideoUpload, video_result: UploadResult, thumbnail_id: Optional[str]) -> None:
        upload.file_name = video_result.content_id
        if video_result.bytes is not None:
            upload.file_size = video_result.bytes
        upload.duration = video_result.duration
        upload.thumbnail_file_name = thumbnail_id
        upload.upload_status = UploadStatus.completed
        upload.processing_progress = 100

    def _fail_upload(self, upload_id: int, exc: Exception) -> None:
        self.db.rollback()
        upload = self.db.get(VideoUpload, upload_id)
        if upload is not None:
            upload.upload_status = UploadStatus.failed
            upload.error_message = str(exc)
            self.db.commit()

    # ======================================================
    # Create
    # ======================================================

    def create_project(
        self,
        data: ProjectCreate,
        *,
        video: Optional[UploadedFile] = None,
        thumbnail: Optional[UploadedFile] = None,
        frame_time: float = 1.0,
        operator_id: Optional[str] = None,
    ) -> Project:
        '''
        创建项目并插入到最前面；附带视频时上传成功后直接发布

        :param data: 已校验的项目字段
        :type data: ProjectCreate
        :param video: 可选视频文件
        :param thumbnail: 可选缩略图；缺省时从视频第 frame_time 秒派生
        :param frame_time: 派生缩略图的时间点（秒）
        :param operator_id: 操作者ID
        :return: 创建的项目
        :rtype: Project
        '''
        # 1. 所有校验在任何写入之前完成
        if video is not None:
            validate_video(video)
        if thumbnail is not None:
            validate_image(thumbnail)
        if data.status != ProjectStatus.draft and video is None:
            raise ValidationError(
                f"A project cannot be '{data.status.value}' without a video",
                field="status",
            )

        # 2. 先以草稿落库
        fields = data.model_dump(exclude={"status", "tags"})
        project = Project(
            **fields,
            tags=",".join(data.tags) if data.tags else None,
            status=ProjectStatus.draft,
            sort_key=self._next_head_key(),
            created_by=operator_id,
        )
        self.db.add(project)
        self.db.commit()
        project_id = project.id
        logger.info(f"Project {project_id} created as draft: {project.title!r}")

        try:
            if video is not None:
                self._publish_with_media(project, video, thumbnail, frame_time, operator_id)
        finally:
            self._invalidate(CacheOp.CREATE, project_id)
        return project

    def _publish_with_media(
        self,
        project: Project,
        video: UploadedFile,
        thumbnail: Optional[UploadedFile],
        frame_time: float,
        operator_id: Optional[str],
    ) -> None:
        project_id = project.id
        uploaded: List[Tuple[str, MediaKind]] = []
        try:
            upload = self._start_upload(project_id=project_id, video=video, operator_id=operator_id)
            video_result, thumbnail_url, thumbnail_id = self._push_media(video, thumbnail, frame_time, uploaded)

            # video_url 与 published 在同一次 flush 中写入
            project.video_url = video_result.url
            project.thumbnail_url = thumbnail_url
            if project.duration is None:
                project.duration = video_result.duration
            project.status = ProjectStatus.published
            self._complete_upload(upload, video_result, thumbnail_id)
            self.db.commit()
        except Exception as exc:
            logger.error(f"Upload for new project {project_id} failed, removing the project: {exc}")
            self._compensate_create(project_id, uploaded)
            raise
        logger.info(f"Project {project_id} published with video {video_result.content_id}")

    def _compensate_create(self, project_id: int, uploaded: List[Tuple[str, MediaKind]]) -> None:
        '''补偿删除：删除刚创建的项目及其上传记录，再尽力清理已上传的媒体'''
        self.db.rollback()
        self.db.execute(delete(VideoUpload).where(VideoUpload.project_id == project_id))
        project = self.db.get(Project, project_id)
        if project is not None:
            self.db.delete(project)
        self.db.commit()
        logger.warning(f"Compensating delete: project {project_id} removed after failed upload")
        self._discard_media(uploaded)

    # ======================================================
    # Update / publish / unpublish
    # ======================================================

    def update_project(
        self,
        project_id: int,
        changes: ProjectUpdate,
        *,
        expected_version: Optional[int] = None,
        operator_id: Optional[str] = None,
    ) -> Project:
        '''
        部分更新；只应用请求中出现的字段

        :param project_id: 项目ID
        :param changes: 已校验的字段变更（可含 displayOrder 与 version）
        :param expected_version: 调用方持有的版本号，不匹配则 409
        :param operator_id: 操作者ID
        '''
        project = self._get_or_404(project_id)
        if expected_version is None:
            expected_version = changes.version
        self._check_version(project, expected_version)

        fields = changes.model_dump(exclude_unset=True, include=set(_EDITABLE_FIELDS) | {"tags"})

        new_status = fields.get("status")
        if new_status == ProjectStatus.published and not project.video_url:
            raise ValidationError(
                "Cannot publish a project without a video",
                field="status",
            )
        if new_status == ProjectStatus.processing and not project.video_url:
            raise ValidationError(
                "Only a project with media can be marked as processing",
                field="status",
            )

        if "tags" in fields:
            tags = fields.pop("tags")
            project.tags = ",".join(tags) if tags else None
        for name, value in fields.items():
            setattr(project, name, value)

        moved = "display_order" in changes.model_fields_set and changes.display_order is not None
        if moved:
            self._move_to_rank(project, changes.display_order)

        self._commit(f"update of project {project_id}")
        logger.info(
            f"Project {project_id} updated by {operator_id}: "
            f"fields={sorted(fields) + (['displayOrder'] if moved else [])}"
        )
        self._invalidate(CacheOp.REORDER if moved else CacheOp.UPDATE, project_id)
        return project

    # ======================================================
    # Reorder
    # ======================================================

    def reorder_projects(self, updates: List[ReorderItem]) -> None:
        '''
        批量排序：一个事务，全部校验通过后才写入

        - 任一 id 不存在 -> 404，不写入
        - 任一版本不匹配 -> 409，不写入
        - 同一批次重复应用结果相同
        - displayOrder 是目标位置；只列出部分项目时，其余项目按原相对顺序补位
        '''
        if not updates:
            return

        ids = [item.id for item in updates]
        if len(set(ids)) != len(ids):
            raise ValidationError("Each project may appear only once in a reorder batch", field="updates")

        found = {p.id: p for p in self.db.scalars(select(Project).where(Project.id.in_(ids)))}
        missing = [project_id for project_id in ids if project_id not in found]
        if missing:
            raise NotFoundError(
                f"Projects not found: {missing}",
                details={"missingIds": missing},
            )

        stale = [
            item.id for item in updates
            if item.version is not None and item.version != found[item.id].version
        ]
        if stale:
            raise ConflictError(
                f"Projects changed since the list was loaded: {stale}",
                details={"staleIds": stale},
            )

        # 未列出的项目保持相对顺序，填补剩余位置
        ordered = list(self.db.scalars(self._ordered_stmt()))
        by_id = {p.id: p for p in ordered}
        merged = merge_placements([p.id for p in ordered], {item.id: item.display_order for item in updates})
        for rank, project_id in enumerate(merged):
            key = key_for_rank(rank)
            if by_id[project_id].sort_key != key:
                by_id[project_id].sort_key = key

        self._commit("reorder")
        logger.info(f"Reordered {len(updates)} projects")
        self._invalidate(CacheOp.REORDER)

    # ======================================================
    # Media replacement
    # ======================================================

    def attach_video(
        self,
        project_id: int,
        video: UploadedFile,
        *,
        thumbnail: Optional[UploadedFile] = None,
        frame_time: float = 1.0,
        publish: bool = True,
        description: Optional[str] = None,
        operator_id: Optional[str] = None,
    ) -> Project:
        '''
        给已有项目上传 / 替换视频

        :param publish: True 时与 video_url 原子地设为 published；
                        False 时草稿进入 processing，其他状态不变
        '''
        validate_video(video)
        if thumbnail is not None:
            validate_image(thumbnail)

        project = self._get_or_404(project_id)
        previous = self._media_refs(project, self._uploads_of(project_id))

        upload = self._start_upload(
            project_id=project_id, video=video, operator_id=operator_id, description=description,
        )
        uploaded: List[Tuple[str, MediaKind]] = []
        try:
            video_result, thumbnail_url, thumbnail_id = self._push_media(video, thumbnail, frame_time, uploaded)
        except Exception as exc:
            logger.error(f"Video upload for project {project_id} failed: {exc}")
            self._fail_upload(upload.id, exc)
            self._discard_media(uploaded)
            raise

        project.video_url = video_result.url
        project.thumbnail_url = thumbnail_url
        if video_result.duration is not None:
            project.duration = video_result.duration
        if publish:
            project.status = ProjectStatus.published
        elif project.status == ProjectStatus.draft:
            project.status = ProjectStatus.processing
        self._complete_upload(upload, video_result, thumbnail_id)

        try:
            self._commit(f"media replacement of project {project_id}")
        except ConflictError:
            self._discard_media(uploaded)
            raise

        logger.info(f"Project {project_id} media replaced, status={project.status.value}")
        fresh = set(uploaded)
        self._discard_media([ref for ref in previous if ref not in fresh])
        self._invalidate(CacheOp.MEDIA, project_id)
        return project

    def upload_unbound_video(
        self,
        video: UploadedFile,
        *,
        thumbnail: Optional[UploadedFile] = None,
        frame_time: float = 1.0,
        description: Optional[str] = None,
        operator_id: Optional[str] = None,
    ) -> VideoUpload:
        '''上传一个尚未绑定项目的视频，仅记录 VideoUpload'''
        validate_video(video)
        if thumbnail is not None:
            validate_image(thumbnail)

        upload = self._start_upload(project_id=None, video=video, operator_id=operator_id, description=description)
        uploaded: List[Tuple[str, MediaKind]] = []
        try:
            video_result, _, thumbnail_id = self._push_media(video, thumbnail, frame_time, uploaded)
        except Exception as exc:
            logger.error(f"Standalone upload {upload.id} failed: {exc}")
            self._fail_upload(upload.id, exc)
            self._discard_media(uploaded)
            raise
        self._complete_upload(upload, video_result, thumbnail_id)
        self.db.commit()
        logger.info(f"Standalone upload {upload.id} completed: {video_result.content_id}")
        return upload

    # ======================================================
    # Delete
    # ======================================================

    def delete_project(self, project_id: int, *, operator_id: Optional[str] = None) -> None:
        '''
        先删 VideoUpload 再删 Project（同一事务），提交后尽力清理远端媒体
        '''
        project = self._get_or_404(project_id)
        uploads = self._uploads_of(project_id)
        refs = self._media_refs(project, uploads)

        self.db.execute(delete(VideoUpload).where(VideoUpload.project_id == project_id))
        self.db.delete(project)
        self._commit(f"delete of project {project_id}")
        logger.info(f"Project {project_id} deleted by {operator_id} ({len(uploads)} uploads removed)")

        self._discard_media(refs)
        self._invalidate(CacheOp.DELETE, project_id)

    # ======================================================
    # Reads
    # ======================================================

    def get_project(self, project_id: int) -> RankedProject:
        project = self._get_or_404(project_id)
        return project, self.display_order_of(project)

    def get_published(self, project_id: int) -> Optional[RankedProject]:
        project = self.db.get(Project, project_id)
        if project is None or project.status != ProjectStatus.published:
            return None
        return project, self.display_order_of(project)

    def list_all(self) -> List[RankedProject]:
        projects = list(self.db.scalars(self._ordered_stmt()))
        return [(p, rank) for rank, p in enumerate(projects)]

    def list_published(self, category: Optional[str] = None) -> List[RankedProject]:
        stmt = self._ordered_stmt().where(Project.status == ProjectStatus.published)
        if category:
            stmt = stmt.where(func.lower(Project.category).in_(self._category_aliases(category)))
        return self._ranked(list(self.db.scalars(stmt)))

    def list_featured(self) -> List[RankedProject]:
        stmt = self._ordered_stmt().where(
            Project.status == ProjectStatus.published,
            Project.featured.is_(True),
        )
        return self._ranked(list(self.db.scalars(stmt)))

    def _category_aliases(self, category: str) -> List[str]:
        # Project.category 是自由文本，可能存 slug 也可能存名称；未知分类照样可筛
        aliases = {category.strip().lower()}
        known = self.db.scalar(
            select(Category).where(
                or_(func.lower(Category.slug) == category.lower(), func.lower(Category.name) == category.lower())
            )
        )
        if known is not None:
            aliases.update({known.slug.lower(), known.name.lower()})
        return sorted(aliases)

    def portfolio_stats(self) -> dict:
        published = Project.status == ProjectStatus.published
        total = self.db.scalar(select(func.count(Project.id)).where(published))
        featured = self.db.scalar(
            select(func.count(Project.id)).where(published, Project.featured.is_(True))
        )
        categories = sorted(
            c for c in self.db.scalars(select(Project.category).where(published).distinct()) if c
        )
        latest = self.db.scalar(
            select(Project).where(published).order_by(Project.created_at.desc(), Project.id.desc()).limit(1)
        )
        return {
            "total_projects": total,
            "featured_projects": featured,
            "categories": categories,
            "latest_project": (latest, self.display_order_of(latest)) if latest is not None else None,
        }

    def suggestions(self) -> Dict[str, List[str]]:
        '''已有项目中的客户 / 代理商，去重排序，供表单自动补全'''
        def distinct(column) -> List[str]:
            values = self.db.scalars(select(column).where(column.is_not(None)).distinct())
            return sorted({v.strip() for v in values if v and v.strip()}, key=str.lower)

        return {
            "clients": distinct(Project.client),
            "agencies": distinct(Project.agency),
        }

    # ======================================================
    # Upload records
    # ======================================================

    def list_uploads(self, project_id: Optional[int] = None) -> List[VideoUpload]:
        if project_id is not None:
            return self._uploads_of(project_id)
        return list(self.db.scalars(
            select(VideoUpload).order_by(VideoUpload.created_at.desc(), VideoUpload.id.desc())
        ))

    def update_upload(self, upload_id: int, *, description: Optional[str]) -> VideoUpload:
        upload = self.db.get(VideoUpload, upload_id)
        if upload is None:
            raise NotFoundError(f"Upload {upload_id} not found")
        upload.description = description
        self.db.commit()
        return upload
