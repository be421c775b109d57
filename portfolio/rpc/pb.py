"""Protobuf messages and gRPC stubs for ``portfolio/protos/portfolio.proto``.

grpcio-tools compiles the .proto on first import (located through
``sys.path``), so the generated ``*_pb2`` modules are never checked in.
"""

import grpc

portfolio_pb2, portfolio_pb2_grpc = grpc.protos_and_services("portfolio/protos/portfolio.proto")

SERVICE_NAME = portfolio_pb2.DESCRIPTOR.services_by_name["PortfolioService"].full_name
