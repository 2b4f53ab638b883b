import threading
from datetime import datetime, timedelta, timezone

from jobqueue.domain.models import Job
from jobqueue.domain.states import JobStatus
from jobqueue.scheduler.dispatcher import select_next_job
from jobqueue.store.memory import JobStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_job(job_type="work", priority=0, created_at=T0, delay=0):
    return Job(
        type=job_type,
        payload={},
        priority=priority,
        created_at=created_at,
        process_at=created_at + timedelta(seconds=delay),
        timeout=10,
        max_retries=3,
    )


class TestSelectNextJob:
    def test_highest_priority_wins(self):
        store = JobStore()
        store.add(make_job(priority=5))
        high = store.add(make_job(priority=10, created_at=T0 + timedelta(seconds=1)))
        store.add(make_job(priority=-1))

        assert select_next_job(store.list_jobs(limit=None), T0 + timedelta(seconds=1)).id == high.id

    def test_fifo_within_priority_band(self):
        store = JobStore()
        first = store.add(make_job(priority=1, created_at=T0))
        store.add(make_job(priority=1, created_at=T0 + timedelta(seconds=1)))

        assert select_next_job(store.list_jobs(limit=None), T0 + timedelta(seconds=5)).id == first.id

    def test_identical_timestamps_fall_back_to_insertion_order(self):
        store = JobStore()
        ids = [store.add(make_job()).id for _ in range(5)]

        claimed = [store.claim_next(T0).id for _ in range(5)]
        assert claimed == ids

    def test_future_jobs_are_not_ready(self):
        store = JobStore()
        store.add(make_job(priority=100, delay=60))
        ready = store.add(make_job(priority=0))

        assert select_next_job(store.list_jobs(limit=None), T0).id == ready.id

    def test_non_waiting_jobs_are_ignored(self):
        store = JobStore()
        store.add(make_job())
        store.claim_next(T0)

        assert select_next_job(store.list_jobs(limit=None), T0) is None


class TestJobStore:
    def test_list_matches_dispatch_order(self):
        store = JobStore()
        low = store.add(make_job(priority=1))
        high = store.add(make_job(priority=9))
        mid = store.add(make_job(priority=5))

        assert [j.id for j in store.list_jobs()] == [high.id, mid.id, low.id]

    def test_list_filters_and_limits(self):
        store = JobStore()
        for _ in range(5):
            store.add(make_job())
        store.claim_next(T0)

        assert len(store.list_jobs(JobStatus.WAITING)) == 4
        assert len(store.list_jobs(JobStatus.ACTIVE)) == 1
        assert len(store.list_jobs(limit=2)) == 2

    def test_get_returns_snapshot(self):
        store = JobStore()
        job = store.add(make_job())

        snapshot = store.get(job.id)
        snapshot.status = JobStatus.FAILED
        snapshot.logs.append("x")

        assert store.get(job.id).status == JobStatus.WAITING
        assert store.get(job.id).logs == []

    def test_remove_refuses_active_jobs(self):
        store = JobStore()
        job = store.add(make_job())
        store.claim_next(T0)

        assert store.remove(job.id) is None
        assert job.id in store

    def test_remove_unknown_job(self):
        assert JobStore().remove("missing") is None

    def test_sweep_only_removes_old_terminal_jobs(self):
        store = JobStore()
        old_done = store.add(make_job())
        waiting = store.add(make_job())
        with store.lock:
            store.live(old_done.id).status = JobStatus.COMPLETED

        removed = store.sweep(T0 + timedelta(seconds=1))

        assert [j.id for j in removed] == [old_done.id]
        assert waiting.id in store
        assert store.sweep(T0 + timedelta(seconds=1)) == []

    def test_claim_records_start(self):
        store = JobStore()
        store.add(make_job())
        now = T0 + timedelta(seconds=3)

        job = store.claim_next(now)

        assert job.status == JobStatus.ACTIVE
        assert job.started_at == now
        assert job.executions == 1

    def test_concurrent_claims_never_hand_out_a_job_twice(self):
        store = JobStore()
        for _ in range(500):
            store.add(make_job())

        claimed = []
        claimed_lock = threading.Lock()

        def claimer():
            while True:
                job = store.claim_next(T0)
                if job is None:
                    return
                with claimed_lock:
                    claimed.append(job.id)

        threads = [threading.Thread(target=claimer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(claimed) == 500
        assert len(set(claimed)) == 500

    def test_counts_and_delayed_view(self):
        store = JobStore()
        store.add(make_job())
        store.add(make_job(delay=30))

        counts = store.counts(T0)
        assert counts["waiting"] == 2
        assert counts["delayed"] == 1
        assert store.next_ready_at(T0) == T0 + timedelta(seconds=30)
        assert store.counts(T0 + timedelta(seconds=31))["delayed"] == 0
