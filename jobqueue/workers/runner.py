import logging
from typing import TYPE_CHECKING

from jobqueue.commands.lease_job import lease_job
from jobqueue.domain.models import WorkerState
from jobqueue.domain.states import WorkerStatus

if TYPE_CHECKING:
    from jobqueue.workers.pool import WorkerPool

logger = logging.getLogger(__name__)

class WorkerRunner:
    """One worker loop: claim the next ready job, run it, repeat."""

    def __init__(self, pool: "WorkerPool", state: WorkerState):
        self.pool = pool
        self.state = state

    @property
    def worker_id(self) -> int:
        return self.state.id

    async def run(self):
        logger.info(f"Worker {self.worker_id} started on queue {self.pool.store.name}")

        try:
            while self.pool.running:
                try:
                    job = lease_job(self.pool.store, self.pool.events, self.pool.clock, self.worker_id)

                    if job is None:
                        await self.pool.wait_for_work()
                        continue

                    self.state.status = WorkerStatus.BUSY
                    self.state.current_job = job.id
                    logger.info(f"Processing job: {job.type} ({job.id}) by worker {self.worker_id}")

                    handler = self.pool.resolve_handler(job.type)
                    await self.pool.guard.run(job, handler)
                    self.state.processed_jobs += 1

                except MemoryError:
                    raise
                except Exception as e:
                    logger.exception("Error in runner loop for worker %s: %s", self.worker_id, e)
                    await self.pool.wait_for_work(self.pool.error_backoff)
                finally:
                    self.state.status = WorkerStatus.IDLE
                    self.state.current_job = None
        finally:
            logger.info(f"Worker {self.worker_id} stopped")
