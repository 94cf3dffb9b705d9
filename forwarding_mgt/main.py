#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
转发规则管理程序入口文件
"""

import argparse
import asyncio
import os
import signal
import sys

import qasync
from PySide6.QtWidgets import QApplication

from forwarding_mgt.config import AppConfig
from forwarding_mgt.ui.main_window import MainWindow
from forwarding_mgt.utils.logging import logger, setup_logging


def handle_exception(exc_type, exc_value, exc_traceback):
    """
    处理未捕获的异常

    Args:
        exc_type: 异常类型
        exc_value: 异常值
        exc_traceback: 异常追踪
    """
    # 忽略KeyboardInterrupt异常
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logger.opt(exception=(exc_type, exc_value, exc_traceback)).critical("未捕获的异常")


def get_base_dir() -> str:
    """打包环境使用可执行文件所在目录，开发环境使用项目根目录"""
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def cancel_pending_tasks(loop) -> int:
    """
    取消事件循环中未完成的任务并等待它们结束

    Returns:
        int: 被取消的任务数量
    """
    pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
    if not pending:
        return 0

    logger.info(f"取消 {len(pending)} 个待处理任务")
    for task in pending:
        task.cancel()
    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
    return len(pending)


def parse_args(argv=None) -> argparse.Namespace:
    """解析命令行参数"""
    parser = argparse.ArgumentParser(description="转发规则管理工具")
    parser.add_argument(
        "--config",
        default=os.path.join(get_base_dir(), "data", "config.json"),
        help="用户配置文件路径（默认：data/config.json）",
    )
    parser.add_argument(
        "--log-dir",
        default=os.path.join(get_base_dir(), "data", "logs"),
        help="日志目录（默认：data/logs）",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """主程序入口"""
    args = parse_args(argv)

    try:
        config = AppConfig.load(args.config)
    except ValueError as e:
        print(f"[ERROR] 加载配置失败: {e}", file=sys.stderr)
        return 1

    setup_logging(
        args.log_dir,
        console_level=config.console_level,
        file_level=config.file_level,
        retention=config.retention,
        rotation=config.rotation
    )

    # 设置未捕获异常处理器
    sys.excepthook = handle_exception

    # 初始化Qt应用
    app = QApplication.instance()
    if not app:
        app = QApplication(sys.argv if argv is None else [sys.argv[0], *argv])
        app.setApplicationName(config.get("app.name", "转发规则管理工具"))

    # 创建事件循环
    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)

    window = MainWindow(config)
    window.show()

    # Windows系统不支持add_signal_handler
    try:
        loop.add_signal_handler(signal.SIGINT, loop.stop)
    except NotImplementedError:
        logger.debug("当前平台不支持add_signal_handler，跳过信号处理设置")

    with loop:
        logger.info(f"程序已启动，服务地址: {config.base_url}")
        loop.call_soon(window.rule_panel.refresh_rules)
        try:
            loop.run_forever()
        finally:
            cancel_pending_tasks(loop)

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n程序已终止")
        sys.exit(0)
