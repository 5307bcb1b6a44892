"""源码包拉取器

职责:
- 下载源码包到缓存目录（缓存命中直接复用）
- 校验和验证（缓存命中同样重新校验）
- 解压源码包，定位源码根目录
"""

from __future__ import annotations

import hashlib
import logging
import os
import tarfile
import urllib.error
import urllib.request
from pathlib import Path

from formulakit.core.exceptions import ChecksumMismatchError, DependencyError
from formulakit.core.models import PackageFormula
from formulakit.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


def sha256_file(path: Path) -> str:
    """流式计算文件 sha256"""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FormulaFetcher:
    """源码包拉取器 - 缓存优先 + 远程下载，任何情况下校验通过才返回"""

    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir)

    def archive_path(self, formula: PackageFormula) -> Path:
        """缓存路径: <cache_dir>/<name>/<version>/<archive>"""
        return self.cache_dir / formula.name / formula.version / formula.archive_name

    def fetch(self, formula: PackageFormula) -> Path:
        """拉取并校验源码包，返回本地路径"""
        dest = self.archive_path(formula)

        if dest.exists():
            logger.info("缓存命中: %s", dest)
            try:
                self.verify(dest, formula.sha256)
            except ChecksumMismatchError:
                dest.unlink(missing_ok=True)
                logger.error("缓存文件已损坏并删除: %s", dest)
                raise
            return dest

        validate_url_scheme(formula.url, context=f"fetch {formula.name}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_name(dest.name + ".incomplete")

        logger.info("下载: %s", formula.url)
        try:
            urllib.request.urlretrieve(formula.url, str(partial))  # nosec B310
        except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
            partial.unlink(missing_ok=True)
            raise DependencyError(f"下载失败: {formula.url} - {e}") from e

        try:
            self.verify(partial, formula.sha256)
        except ChecksumMismatchError:
            partial.unlink(missing_ok=True)
            raise
        os.replace(partial, dest)
        logger.info("已保存: %s", dest)
        return dest

    @staticmethod
    def verify(path: Path, expected: str) -> None:
        actual = sha256_file(path)
        if actual != expected.lower():
            raise ChecksumMismatchError(str(path), expected, actual)
        logger.info("校验和通过: %s", path.name)

    @staticmethod
    def extract(archive: Path, dest: Path) -> Path:
        """解压源码包到 dest，返回源码根目录

        源码包只有一个顶层目录时（如 GitHub 归档 prs-0.4.1/），返回该目录。
        """
        dest.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(dest), filter="data")  # noqa: S202
        except (OSError, tarfile.TarError) as e:
            raise DependencyError(f"解压失败 {archive}: {e}") from e

        entries = [p for p in dest.iterdir() if not p.name.startswith(".")]
        root = entries[0] if len(entries) == 1 and entries[0].is_dir() else dest
        logger.info("源码已解压: %s -> %s", archive.name, root)
        return root
