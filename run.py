# run.py
"""
run.py 是标准 Flask 服务启动脚本（给开发者 / CLI 用）
生产环境请用 gunicorn "showreel.app_factory:create_app('production')"
"""
import os

from showreel.app_factory import create_app
from showreel.db.auto_init import auto_init
from showreel.logger import get_logger

logger = get_logger("run")


def main():
    # 1️创建 Flask app（同时绑定数据库）
    app = create_app(os.getenv("APP_CONFIG", "development"))

    # 2️启动前初始化数据库
    auto_init()

    logger.info(f"Routes:\n{app.url_map}")

    # 3️启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))

    # 4️启动服务
    app.run(host=host, port=port, debug=app.config["DEBUG"], use_reloader=False)


if __name__ == "__main__":
    main()
