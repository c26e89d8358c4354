"""JavaScript/TypeScript protoc generator plugins.

- JsBufbuildEsGenerator: TypeScript messages via protoc-gen-es
- JsProtobufGenerator: legacy CommonJS + binary output via protoc's js plugin
- JsConnectRpcGenerator: protoc-gen-es messages plus protoc-gen-connect-es clients

These plugins place output by schema path already, so no package remapping
flags are emitted.
"""

from typing import Optional

from ..protocol import SDK_JS_BUFBUILD_ES, SDK_JS_CONNECTRPC, SDK_JS_PROTOBUF, CommandRunner, GeneratorInput
from ..utils import clean_path
from .protoc import ProtocGenerator, proto_path_flag

TARGET_TS = "target=ts"


def build_js_bufbuild_es_args(input: GeneratorInput) -> list[str]:
    output_path = clean_path(input.output_path)
    args = [
        proto_path_flag(input),
        f"--es_out={output_path}",
        f"--es_opt={TARGET_TS}",
    ]
    args.extend(input.proto_files)
    return args


def build_js_protobuf_args(input: GeneratorInput) -> list[str]:
    args = [
        proto_path_flag(input),
        f"--js_out=import_style=commonjs,binary:{clean_path(input.output_path)}",
    ]
    args.extend(input.proto_files)
    return args


def build_js_connectrpc_args(input: GeneratorInput) -> list[str]:
    output_path = clean_path(input.output_path)
    args = [
        proto_path_flag(input),
        f"--es_out={output_path}",
        f"--es_opt={TARGET_TS}",
        f"--connect-es_out={output_path}",
        f"--connect-es_opt={TARGET_TS}",
    ]
    args.extend(input.proto_files)
    return args


class JsBufbuildEsGenerator(ProtocGenerator):
    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_JS_BUFBUILD_ES, build_js_bufbuild_es_args, runner)


class JsProtobufGenerator(ProtocGenerator):
    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_JS_PROTOBUF, build_js_protobuf_args, runner)


class JsConnectRpcGenerator(ProtocGenerator):
    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_JS_CONNECTRPC, build_js_connectrpc_args, runner)
