import asyncio
import os
import time

from jobqueue import JobQueue, JobStatus, Settings
from jobqueue.utils.signals import install_signal_handlers

NUM_JOBS = int(os.getenv("BENCH_NUM_JOBS", "2000"))
CONCURRENT_WORKERS = int(os.getenv("BENCH_WORKERS", "20"))

async def noop_handler(ctx):
    await asyncio.sleep(0)
    return {"bench": "ok", "n": ctx.payload["n"]}

async def run_benchmark():
    queue = JobQueue("bench", Settings(CONCURRENCY=CONCURRENT_WORKERS, IDLE_INTERVAL_SECONDS=0.05))
    queue.register_handler("bench", noop_handler)

    start = time.time()
    for i in range(NUM_JOBS):
        queue.add("bench", {"n": i})
    injection_time = time.time() - start
    injection_rate = NUM_JOBS / injection_time if injection_time > 0 else 0

    start_time = time.time()
    await queue.start()
    install_signal_handlers(queue)
    while queue.is_running and queue.stats().completed + queue.stats().failed < NUM_JOBS:
        await asyncio.sleep(0.05)
    total_time = time.time() - start_time
    await queue.shutdown()

    total_processed = len(queue.list_jobs(JobStatus.COMPLETED, limit=None))
    throughput = total_processed / total_time if total_time > 0 else 0

    print("\n" + "="*40)
    print(f"BENCHMARK RESULTS")
    print("="*40)
    print(f"Concurrent Workers:   {CONCURRENT_WORKERS}")
    print(f"Injection Rate:       {injection_rate:.2f} jobs/second")
    print(f"Total Jobs Processed: {total_processed}")
    print(f"Processing Time:      {total_time:.2f} seconds")
    print(f"Throughput:           {throughput:.2f} jobs/second")
    print(f"Avg Job Duration:     {queue.stats().avg_duration_ms}ms")
    print("="*40)

if __name__ == "__main__":
    asyncio.run(run_benchmark())
