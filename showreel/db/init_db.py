from showreel.db.session import get_engine
from showreel.db.base import Base


def init_db():
    # 所有模型必须先注册到 Base.metadata
    import showreel.models  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
