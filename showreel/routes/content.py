# showreel/routes/content.py
"""Categories, biography and contact: public reads plus admin editing."""
from flask import Blueprint, jsonify

from showreel.db.session import get_session
from showreel.errors import ValidationError
from showreel.extensions import admin_limit, contact_limit, get_mail_service, get_media_store, upload_limit
from showreel.routes.common import json_body, parse, uploaded_file
from showreel.routes.guards import admin_required, current_user_id
from showreel.schemas.content import (
    BiographyUpdate,
    CategoryCreate,
    CategoryUpdate,
    ContactForm,
    ContactSettingsUpdate,
)
from showreel.schemas.dto.biography_dto import BiographyDTO
from showreel.schemas.dto.category_dto import CategoryDTO
from showreel.schemas.dto.contact_dto import ContactSettingsDTO, PublicContactSettingsDTO
from showreel.services.biography_service import BiographyService
from showreel.services.category_service import CategoryService
from showreel.services.contact_service import ContactService

content_bp = Blueprint('content', __name__, url_prefix='/api')


# =========
# Categories
# =========

def _categories_json(db):
    return [CategoryDTO.from_orm_model(c).to_json() for c in CategoryService(db).list_categories()]


@content_bp.route('/categories', methods=['GET'])
def list_categories():
    db = get_session()
    try:
        return jsonify(_categories_json(db))
    finally:
        db.close()


@content_bp.route('/admin/categories', methods=['GET'])
@admin_required
def admin_list_categories():
    db = get_session()
    try:
        return jsonify(_categories_json(db))
    finally:
        db.close()


@content_bp.route('/admin/categories', methods=['POST'])
@admin_limit
@admin_required
def create_category():
    data = parse(CategoryCreate, json_body())

    db = get_session()
    try:
        category = CategoryService(db).create_category(data)
        db.commit()
        return jsonify(CategoryDTO.from_orm_model(category).to_json()), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@content_bp.route('/admin/categories/<int:category_id>', methods=['PATCH', 'PUT'])
@admin_limit
@admin_required
def update_category(category_id):
    data = parse(CategoryUpdate, json_body())

    db = get_session()
    try:
        category = CategoryService(db).update_category(category_id, data)
        db.commit()
        return jsonify(CategoryDTO.from_orm_model(category).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@content_bp.route('/admin/categories/<int:category_id>', methods=['DELETE'])
@admin_limit
@admin_required
def delete_category(category_id):
    db = get_session()
    try:
        CategoryService(db).delete_category(category_id)
        db.commit()
        return '', 204
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =========
# Biography
# =========

@content_bp.route('/biography', methods=['GET'])
def get_biography():
    db = get_session()
    try:
        bio = BiographyService(db).get_biography()
        return jsonify(BiographyDTO.from_orm_model(bio).to_json())
    finally:
        db.close()


@content_bp.route('/admin/biography', methods=['PUT'])
@admin_limit
@admin_required
def save_biography():
    data = parse(BiographyUpdate, json_body())

    db = get_session()
    try:
        bio = BiographyService(db).save_biography(data, operator_id=current_user_id())
        db.commit()
        return jsonify(BiographyDTO.from_orm_model(bio).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@content_bp.route('/admin/biography/photo', methods=['POST'])
@admin_limit
@upload_limit
@admin_required
def upload_biography_photo():
    photo = uploaded_file('photo')
    if photo is None:
        raise ValidationError("A photo file is required", field="photo")

    db = get_session()
    try:
        service = BiographyService(db, media_store=get_media_store())
        bio, previous_url = service.replace_photo(photo, operator_id=current_user_id())
        db.commit()
        # 提交成功后再清理旧头像
        service.discard_photo(previous_url)
        return jsonify(BiographyDTO.from_orm_model(bio).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =========
# Contact
# =========

@content_bp.route('/contact/settings', methods=['GET'])
def public_contact_settings():
    db = get_session()
    try:
        settings = ContactService(db).get_settings()
        return jsonify(PublicContactSettingsDTO.from_orm_model(settings).to_json())
    finally:
        db.close()


@content_bp.route('/admin/contact/settings', methods=['GET'])
@admin_required
def admin_contact_settings():
    db = get_session()
    try:
        settings = ContactService(db).get_settings()
        return jsonify(ContactSettingsDTO.from_orm_model(settings).to_json())
    finally:
        db.close()


@content_bp.route('/admin/contact/settings', methods=['PUT'])
@admin_limit
@admin_required
def save_contact_settings():
    data = parse(ContactSettingsUpdate, json_body())

    db = get_session()
    try:
        settings = ContactService(db).save_settings(data, operator_id=current_user_id())
        db.commit()
        return jsonify(ContactSettingsDTO.from_orm_model(settings).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@content_bp.route('/contact', methods=['POST'])
@contact_limit
def submit_contact():
    form = parse(ContactForm, json_body())

    db = get_session()
    try:
        submission = ContactService(db, mail_service=get_mail_service()).submit(form)
        return jsonify({
            "ok": True,
            "id": submission.id,
            "message": "Thank you for your message. We'll get back to you soon!",
        })
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
