"""Generator plugin implementations.

This module contains all generator plugins:
- BufGenerator: manifest-driven generation via `buf generate`
- GoProtobufGenerator, GoGrpcGenerator, GoConnectRpcGenerator: protoc Go plugins
- JsBufbuildEsGenerator, JsProtobufGenerator, JsConnectRpcGenerator: protoc JS/TS plugins
- DocumentationGenerator: markdown API docs via protoc-gen-doc
"""

from .buf import BufGenerator
from .documentation import DocumentationGenerator
from .javascript import JsBufbuildEsGenerator, JsConnectRpcGenerator, JsProtobufGenerator
from .protoc import GoConnectRpcGenerator, GoGrpcGenerator, GoProtobufGenerator, ProtocGenerator

__all__ = [
    "BufGenerator",
    "DocumentationGenerator",
    "GoConnectRpcGenerator",
    "GoGrpcGenerator",
    "GoProtobufGenerator",
    "JsBufbuildEsGenerator",
    "JsConnectRpcGenerator",
    "JsProtobufGenerator",
    "ProtocGenerator",
]
