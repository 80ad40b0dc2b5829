# inventory_edge/api/deps.py
from fastapi import Request

from inventory_edge.domain.scan.service import ScanQueue
from inventory_edge.domain.sync.monitor import ConnectivityMonitor
from inventory_edge.domain.sync.service import SyncEngine
from inventory_edge.remote.client import RemoteStore


def get_scan_queue(request: Request) -> ScanQueue:
    return request.app.state.scan_queue


def get_sync_engine(request: Request) -> SyncEngine:
    return request.app.state.sync_engine


def get_connectivity_monitor(request: Request) -> ConnectivityMonitor:
    return request.app.state.connectivity_monitor


def get_remote(request: Request) -> RemoteStore:
    return request.app.state.remote
