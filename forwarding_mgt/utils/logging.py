"""
日志配置模块

配置系统日志记录，支持控制台输出和文件记录。
"""

import os
import sys
import time
from typing import Optional

from loguru import logger

LOG_FILE_PREFIX = "forwarding_mgt"


def setup_logging(
    log_dir: str,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    retention: str = "7 days",
    rotation: str = "50 MB"
) -> str:
    """
    配置日志系统

    Args:
        log_dir: 日志文件目录
        console_level: 控制台日志级别
        file_level: 文件日志级别
        retention: 日志保留时间
        rotation: 日志文件轮转大小

    Returns:
        str: 日志文件路径
    """
    # 确保日志目录存在
    os.makedirs(log_dir, exist_ok=True)

    # 移除默认处理器
    logger.remove()

    # 添加控制台处理器
    logger.add(
        sys.stdout,
        level=console_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>",
        backtrace=True,
        diagnose=False
    )

    log_file = get_log_file_path(log_dir)

    # 添加文件处理器
    logger.add(
        log_file,
        level=file_level,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | "
        "{level: <8} | "
        "{name}:{function}:{line} | "
        "{message}",
        rotation=rotation,
        retention=retention,
        encoding="utf-8",
        backtrace=True,
        diagnose=False
    )

    logger.info(f"日志系统初始化完成，日志文件：{log_file}")
    return log_file


def get_logger(name: str = None):
    """
    获取logger实例

    Args:
        name: 日志器名称

    Returns:
        Logger: logger实例
    """
    return logger.bind(name=name) if name else logger


def log_exception(e: Exception, context: str = "") -> None:
    """
    记录异常信息

    Args:
        e: 异常对象
        context: 上下文信息
    """
    error_msg = f"{context} - {str(e)}" if context else str(e)
    logger.opt(exception=e).error(error_msg)


def log_api_request(method: str, url: str, params: dict = None, data: dict = None) -> None:
    """
    记录API请求信息

    Args:
        method: 请求方法
        url: 请求URL
        params: URL参数
        data: 请求数据
    """
    logger.debug(f"API请求: {method} {url}")
    if params:
        logger.debug(f"请求参数: {params}")
    if data:
        logger.debug(f"请求数据: {data}")


def log_api_response(method: str, url: str, status_code: int, elapsed: float) -> None:
    """记录API响应状态和耗时"""
    logger.debug(f"API响应: {method} {url} 状态码={status_code}, 耗时={elapsed:.3f}秒")


def get_log_file_path(log_dir: Optional[str] = None) -> str:
    """
    获取当前日志文件路径

    Args:
        log_dir: 日志目录，为空时使用默认的 data/logs 目录

    Returns:
        str: 日志文件路径
    """
    if log_dir is None:
        # 打包环境使用可执行文件所在目录，开发环境使用项目根目录
        if getattr(sys, 'frozen', False):
            base_dir = os.path.dirname(sys.executable)
        else:
            base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
        log_dir = os.path.join(base_dir, 'data', 'logs')

    return os.path.join(log_dir, f"{LOG_FILE_PREFIX}_{time.strftime('%Y%m%d')}.log")
