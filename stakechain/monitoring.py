# stakechain/monitoring.py
import socket
import threading
import logging
from socketserver import ThreadingMixIn
from wsgiref.simple_server import make_server, WSGIServer

import psutil
from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry
from prometheus_client.exposition import make_wsgi_app

logger = logging.getLogger(__name__)


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """A WSGI server that runs in a separate thread to not block the main application."""
    allow_reuse_address = True


class Monitor:
    """
    Prometheus metrics for a chain engine.

    Metrics live in an isolated registry so several engines can coexist in
    one process. The HTTP endpoint is only started on request.
    """

    def __init__(self, engine, host="127.0.0.1", port=9090):
        self.engine = engine
        self.host = host
        self.port = port
        self.server = None
        self.thread = None

        self.registry = CollectorRegistry()

        self.tx_counter = Counter('ledger_transactions_total', 'Transactions seen by the engine', ['status'], registry=self.registry)
        self.blocks_produced = Counter('ledger_blocks_produced_total', 'Blocks produced', ['producer'], registry=self.registry)
        self.delegations = Counter('ledger_delegations_total', 'Successful delegations', registry=self.registry)
        self.block_latency = Histogram('ledger_block_production_seconds', 'Time to produce and settle a block', registry=self.registry)
        self.chain_height = Gauge('ledger_chain_height', 'Current height of the chain', registry=self.registry)
        self.pending_size = Gauge('ledger_pending_transactions', 'Number of transactions in the pending pool', registry=self.registry)
        self.validator_count = Gauge('ledger_active_validators', 'Number of active validators', registry=self.registry)
        self.total_supply = Gauge('ledger_total_supply', 'Total minted supply', registry=self.registry)
        self.cpu_usage = Gauge('system_cpu_percent', 'Current CPU usage percent', registry=self.registry)
        self.memory_usage = Gauge('system_memory_percent', 'Current memory usage percent', registry=self.registry)

    def start_server(self):
        """Starts the Prometheus HTTP endpoint in a daemon thread."""
        app = make_wsgi_app(self.registry)
        self.server = make_server(self.host, self.port, app, ThreadingWSGIServer)
        self.server.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        self.thread = threading.Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()
        logger.info(f"Prometheus server started on http://{self.host}:{self.port}")

    def stop_server(self):
        """Stops the HTTP server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
            logger.info("Prometheus server stopped.")

    def update(self):
        info = self.engine.chain_info()
        self.chain_height.set(info.height)
        self.pending_size.set(info.pending_count)
        self.validator_count.set(info.active_validator_count)
        self.total_supply.set(info.total_supply)

        self.cpu_usage.set(psutil.cpu_percent())
        self.memory_usage.set(psutil.virtual_memory().percent)

    def record_submission(self, accepted: bool):
        self.tx_counter.labels(status='submitted' if accepted else 'rejected').inc()

    def record_block(self, block, dropped: int, latency: float):
        self.tx_counter.labels(status='included').inc(len(block.transactions))
        if dropped:
            self.tx_counter.labels(status='dropped').inc(dropped)
        self.blocks_produced.labels(producer=block.producer).inc()
        self.block_latency.observe(latency)
        self.chain_height.set(block.height)

    def record_delegation(self):
        self.delegations.inc()

