"""前景提取：把签名/印章的墨迹从纸张背景中分离出来，输出连续的不透明度掩膜"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from . import config
from .config import ProcessingParams
from .errors import InternalInvariantViolation

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def flatten_on_paper(pixels: np.ndarray) -> np.ndarray:
    """将 RGBA 图像按透明度合成到白纸上

    Args:
        pixels (numpy.ndarray): HxWx4 的 uint8 RGBA 图像

    Returns:
        numpy.ndarray: HxWx3 的 float32 RGB 图像，取值 0-255
    """
    rgb = pixels[..., :3].astype(np.float32)
    alpha = pixels[..., 3:4].astype(np.float32) / 255.0
    return rgb * alpha + 255.0 * (1.0 - alpha)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """计算亮度 0.299R + 0.587G + 0.114B（float32，0-255）"""
    return rgb.astype(np.float32) @ LUMA_WEIGHTS


def chroma(rgb: np.ndarray) -> np.ndarray:
    """色度：(max - min) / 255，灰色像素为 0，鲜艳色接近 1

    轻微高斯平滑，使其作用于成片的彩色区域（如印章晕染），而非孤立像素。
    """
    spread = (rgb.max(axis=2) - rgb.min(axis=2)) / 255.0
    return cv2.GaussianBlur(spread.astype(np.float32), (3, 3), 0)


def background_window(height: int, width: int) -> int:
    """背景估计窗口：短边的 1/4，取奇数并限制在 [15, 75]"""
    size = int(min(height, width) // 4)
    size = max(config.BACKGROUND_WINDOW_MIN, min(config.BACKGROUND_WINDOW_MAX, size))
    return size // 2 * 2 + 1


def estimate_background(lum: np.ndarray, window: int) -> np.ndarray:
    """局部背景亮度估计

    先做灰度膨胀（局部最大值）抹掉比窗口窄的深色笔画，再均值模糊，
    这样扫描件光照不均时阈值会随局部纸张亮度变化。
    """
    kernel = np.ones((window, window), np.uint8)
    paper = cv2.dilate(lum, kernel)
    return cv2.blur(paper, (window, window))


def threshold_cut(threshold: float) -> float:
    """阈值旋钮 (0-100) -> 墨迹深度的分割点，值越大去掉的背景越多"""
    return config.CUT_MIN + (config.CUT_MAX - config.CUT_MIN) * threshold / 100.0


def transition_band(edge_smoothness: float) -> float:
    """边缘平滑旋钮 (0-100) -> 过渡带宽度"""
    return config.BAND_MIN + (config.BAND_MAX - config.BAND_MIN) * edge_smoothness / 100.0


def smooth_ramp(distance: np.ndarray, band: float) -> np.ndarray:
    """带符号距离 -> [0,1] 的平滑过渡（smoothstep）

    距离 <= 0（包括恰好落在阈值上的像素）一律判为背景。
    """
    t = np.clip(distance / band, 0.0, 1.0)
    return (t * t * (3.0 - 2.0 * t)).astype(np.float32)


def darkness_map(pixels: np.ndarray, saturation_filter: float = 0.0,
                 window: Optional[int] = None) -> np.ndarray:
    """每个像素相对于局部背景的墨迹深度，saturation_filter > 0 时扣除色度项"""
    paper = flatten_on_paper(pixels)
    lum = luminance(paper)
    if window is None:
        window = background_window(*lum.shape)
    background = estimate_background(lum, window)
    darkness = (background - lum) / 255.0
    if saturation_filter > 0:
        weight = saturation_filter / 100.0 * config.SATURATION_WEIGHT
        darkness = darkness - weight * chroma(paper)
    return darkness


def binarize(pixels: np.ndarray, params: ProcessingParams,
             window: Optional[int] = None) -> np.ndarray:
    """自适应阈值前景提取

    Args:
        pixels (numpy.ndarray): HxWx4 的 uint8 RGBA 图像
        params (ProcessingParams): 使用 threshold / edge_smoothness / saturation_filter
        window (int, optional): 背景估计窗口，默认按图像尺寸自动选择

    Returns:
        numpy.ndarray: 与输入同尺寸的 float32 掩膜，取值 [0, 1]
    """
    if not isinstance(pixels, np.ndarray) or pixels.ndim != 3 or pixels.shape[2] != 4:
        raise InternalInvariantViolation(
            f"binarize expects an HxWx4 buffer, got {getattr(pixels, 'shape', None)}"
        )
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        return np.zeros(pixels.shape[:2], dtype=np.float32)

    darkness = darkness_map(pixels, params.saturation_filter, window)
    cut = threshold_cut(params.threshold)
    band = transition_band(params.edge_smoothness)
    mask = smooth_ramp(darkness - cut, band)

    # 源图中几乎透明的像素视为背景
    mask[pixels[..., 3] < config.MIN_SOURCE_ALPHA] = 0.0
    mask = np.clip(mask, 0.0, 1.0)
    logger.debug("binarize: cut=%.3f band=%.3f foreground=%d", cut, band, int(np.count_nonzero(mask)))
    return mask
