from prometheus_client import Counter, Gauge, Histogram


class SettlementMetrics:
    """
    Settlement Service Core Metrics Collector

    Tracks webhook settlements, gateway calls, payouts and the notification queue
    """

    def __init__(self):
        # ========== Settlement Metrics ==========
        self.settlements = Counter(
            'settlement_requests_total',
            'Settlement attempts by transaction type and outcome',
            ['type', 'result'],  # result: settled/already_settled/rejected/error
        )

        self.settlement_duration = Histogram(
            'settlement_duration_seconds',
            'Time from verification to commit',
            ['type'],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
        )

        self.money_moved = Counter(
            'settlement_amount_minor_units_total',
            'Minor units credited per recipient role',
            ['role'],  # platform/organizer/seller/user
        )

        # ========== Gateway Metrics ==========
        self.payouts = Counter(
            'settlement_payouts_total',
            'Payout requests sent to the gateway',
            ['kind', 'result'],  # kind: resale/withdrawal
        )
        self.checkouts_expired = Counter(
            'settlement_checkouts_expired_total',
            'Unpaid purchases failed by the expiry sweep',
        )

        # ========== Task Queue Metrics ==========
        self.tasks_enqueued = Counter(
            'task_queue_enqueued_total', 'Tasks accepted by the queue', ['task']
        )
        self.tasks_dropped = Counter(
            'task_queue_dropped_total',
            'Tasks rejected because the queue was full or stopped',
            ['task'],
        )
        self.tasks_dead_lettered = Counter(
            'task_queue_dead_lettered_total',
            'Tasks that exhausted their retries',
            ['task'],
        )
        self.queue_depth = Gauge('task_queue_depth', 'Tasks waiting in the queue')

    # ========== Helper Methods ==========

    def record_settlement(self, *, transaction_type: str, result: str, duration: float) -> None:
        self.settlements.labels(type=transaction_type, result=result).inc()
        self.settlement_duration.labels(type=transaction_type).observe(duration)

    def record_credit(self, *, role: str, amount: int) -> None:
        if amount > 0:
            self.money_moved.labels(role=role).inc(amount)

    def record_payout(self, *, kind: str, result: str) -> None:
        self.payouts.labels(kind=kind, result=result).inc()


# Global metrics instance
metrics = SettlementMetrics()
