"""マッピングモデル・アーカイブビルダー（オーケストレーター）.

仕様リーダーから得たメッセージごとのマッピングモデルを、マッピングエンジンが
そのまま読み込めるアーカイブ（zip ストリーム、またはディレクトリ）にまとめる。
タグの重複解消とシリアライズは core 側に寄せ、ここでは「取り込み順（再現性）」
「エントリ構成」「出力先の確実なクローズ」を担う。

アーカイブ構成:
    <prefix>/<message_id>.xml           メッセージごとのマッピングモデル
    META-INF/mapping-models.lst         /<entry>!<name>!<version> の一覧
    META-INF/mapping-models.urn         URN
    META-INF/interchange.properties     インターチェンジ設定
"""

from __future__ import annotations

import argparse
import shutil
from pathlib import Path
from typing import IO, Any, BinaryIO

from loguru import logger

from edimap_archive_builder.adapters.base_adapter import BaseSpecificationReader
from edimap_archive_builder.adapters.yaml_adapter import YamlDefinitionAdapter
from edimap_archive_builder.config import BuildConfig, load_build_config, resolve_build_config
from edimap_archive_builder.core.archive import Archive, ArchiveSink, DirectorySink, ZipStreamSink, check_entry_path
from edimap_archive_builder.core.dedupe import normalize_tags
from edimap_archive_builder.core.exceptions import (
    ArchiveBuildError,
    InvalidArgumentError,
    SerializationError,
    UpstreamReadError,
)
from edimap_archive_builder.core.paths import (
    INTERCHANGE_PROPERTIES_FILE,
    MAPPING_MODEL_LIST_FILE,
    MAPPING_MODEL_URN_FILE,
    message_entry_path,
    model_list_line,
    path_prefix,
)
from edimap_archive_builder.core.properties import store_properties
from edimap_archive_builder.core.serialize import serialize

INTERCHANGE_PROPERTIES_COMMENT = "UN/EDIFACT Interchange Properties"


def _validate(reader: BaseSpecificationReader | None, urn: str | None) -> None:
    if reader is None:
        raise InvalidArgumentError("reader")
    if urn is None:
        raise InvalidArgumentError("urn")
    if not isinstance(urn, str) or not urn.strip():
        raise InvalidArgumentError("urn", "must be a non-empty string")
    if any(part == "" for part in path_prefix(urn).split("/")):
        # "urn:example:" や ":urn" は zip とディレクトリで別のパスになる
        raise InvalidArgumentError("urn", f"must not contain empty segments: {urn!r}")


def build_archive(reader: BaseSpecificationReader, urn: str) -> Archive:
    """リーダーの全メッセージからアーカイブを組み立てる（メモリ上）.

    Args:
        reader: 仕様リーダー
        urn: マッピングモデルセットの URN（例: "urn:org.example:d96a"）

    Returns:
        メッセージ数 + 3 エントリのアーカイブ

    Raises:
        InvalidArgumentError: reader が None、または urn が空の場合
        UpstreamReadError: リーダーがメッセージ/モデル/プロパティを返せない場合
        SerializationError: モデルをシリアライズできない場合
    """
    _validate(reader, urn)

    archive = Archive()
    prefix = path_prefix(urn)
    model_list: list[str] = []

    try:
        message_ids = reader.message_ids()
    except ArchiveBuildError:
        raise
    except Exception as e:
        raise UpstreamReadError(f"Failed to read message set: {e}") from e

    logger.info(f"[Archive] Building {len(message_ids)} mapping models under '{prefix}' (urn={urn})")

    for message_id in message_ids:
        try:
            model = reader.mapping_model(message_id)
        except ArchiveBuildError:
            raise
        except Exception as e:
            raise UpstreamReadError(f"Failed to read mapping model: {e}", message_id=message_id) from e

        # 兄弟ノードの xmltag を一意にしてからシリアライズする
        normalize_tags(model.segments)

        try:
            document = serialize(model)
        except SerializationError as e:
            raise SerializationError("Failed to serialize mapping model", message_id=message_id) from e

        entry_path = message_entry_path(prefix, message_id)
        try:
            check_entry_path(entry_path)
        except InvalidArgumentError as e:
            raise UpstreamReadError("Message id is not usable as an entry name", message_id=message_id) from e
        archive.add_entry(entry_path, document)
        model_list.append(model_list_line(entry_path, model.description))
        logger.debug(f"[Archive] Added {entry_path} ({model.description.name} {model.description.version})")

    archive.add_entry(MAPPING_MODEL_LIST_FILE, "".join(model_list))
    archive.add_entry(MAPPING_MODEL_URN_FILE, urn)

    try:
        properties = reader.interchange_properties()
    except ArchiveBuildError:
        raise
    except Exception as e:
        raise UpstreamReadError(f"Failed to read interchange properties: {e}") from e
    archive.add_entry(
        INTERCHANGE_PROPERTIES_FILE,
        store_properties(properties, INTERCHANGE_PROPERTIES_COMMENT),
    )

    return archive


def write_archive(reader: BaseSpecificationReader, sink: ArchiveSink, urn: str) -> Archive:
    """アーカイブを組み立ててシンクへ書き出す.

    シンクはどの経路で抜けても（例外時も）必ず1回だけクローズする。

    Raises:
        InvalidArgumentError: sink / reader が None、または urn が空の場合
        SinkWriteError: エントリ書き込み、または確定処理に失敗した場合
    """
    if sink is None:
        raise InvalidArgumentError("sink")

    try:
        archive = build_archive(reader, urn)
        archive.write_to(sink)
    finally:
        sink.close()

    logger.info(f"[Archive] Wrote {len(archive)} entries")
    return archive


def from_spec_to_stream(reader: BaseSpecificationReader, out_stream: BinaryIO, urn: str) -> Archive:
    """Write the mapping model set as a zip archive to ``out_stream`` (closed afterwards)."""
    if out_stream is None:
        raise InvalidArgumentError("out_stream")
    return write_archive(reader, ZipStreamSink(out_stream), urn)


def from_spec_to_directory(reader: BaseSpecificationReader, out_folder: Path | str, urn: str) -> Archive:
    """Write the mapping model set as a directory tree below ``out_folder``."""
    if out_folder is None:
        raise InvalidArgumentError("out_folder")
    return write_archive(reader, DirectorySink(out_folder), urn)


def from_definition_stream(definition_stream: IO[Any], out_stream: BinaryIO, urn: str) -> Archive:
    """Convert a definition document stream to a zip archive.

    Both streams are closed on every exit path.
    """
    if definition_stream is None:
        if out_stream is not None:
            out_stream.close()
        raise InvalidArgumentError("definition_stream")

    try:
        if out_stream is None:
            raise InvalidArgumentError("out_stream")
        try:
            reader = YamlDefinitionAdapter(definition_stream)
        except BaseException:
            out_stream.close()
            raise
        return from_spec_to_stream(reader, out_stream, urn)
    finally:
        definition_stream.close()


def from_definition_stream_to_directory(definition_stream: IO[Any], out_folder: Path | str, urn: str) -> Archive:
    """Convert a definition document stream to a directory tree (stream closed afterwards)."""
    if definition_stream is None:
        raise InvalidArgumentError("definition_stream")

    try:
        return from_spec_to_directory(YamlDefinitionAdapter(definition_stream), out_folder, urn)
    finally:
        definition_stream.close()


def build_from_config(config: BuildConfig) -> Archive:
    """設定に従って定義ファイルからアーカイブを生成する.

    Raises:
        FileExistsError: 出力先が存在し、overwrite=False の場合
        FileNotFoundError: 定義ファイルが存在しない場合
    """
    if not config.definitions.exists():
        raise FileNotFoundError(f"Definition file not found: {config.definitions}")

    if config.output.exists():
        if not config.overwrite:
            msg = f"Output already exists: {config.output}. Use --overwrite to replace."
            raise FileExistsError(msg)
        logger.warning(f"Removing existing output: {config.output}")
        if config.output.is_dir():
            shutil.rmtree(config.output)
        else:
            config.output.unlink()

    # 出力先の親ディレクトリは定義ファイルを開く前に用意する
    if config.output_format != "directory":
        config.output.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"[Archive] Reading definitions: {config.definitions}")
    definition_stream = open(config.definitions, encoding="utf-8")

    if config.output_format == "directory":
        archive = from_definition_stream_to_directory(definition_stream, config.output, config.urn)
    else:
        try:
            out_stream = open(config.output, "wb")
        except BaseException:
            definition_stream.close()
            raise
        archive = from_definition_stream(definition_stream, out_stream, config.urn)

    logger.info(f"[COMPLETE] Mapping model archive written: {config.output}")
    return archive


def main(argv: list[str] | None = None) -> None:
    """CLI エントリポイント."""
    parser = argparse.ArgumentParser(description="Build an EDI mapping model archive")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML config file (values under 'build:'; command line wins)",
    )
    parser.add_argument(
        "--definitions",
        type=Path,
        default=None,
        help="Message definition document (YAML or JSON)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output zip file, or directory with --format directory",
    )
    parser.add_argument(
        "--urn",
        type=str,
        default=None,
        help="URN of the mapping model set (e.g. urn:org.example:d96a)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=["zip", "directory"],
        default=None,
        help="Output format (default: zip)",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite the output if it already exists",
    )

    args = parser.parse_args(argv)

    file_values = load_build_config(args.config) if args.config else None
    config = resolve_build_config(
        file_values,
        definitions=args.definitions,
        output=args.output,
        urn=args.urn,
        output_format=args.output_format,
        overwrite=args.overwrite or None,
    )
    build_from_config(config)


if __name__ == "__main__":
    main()
