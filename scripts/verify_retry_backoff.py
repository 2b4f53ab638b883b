#!/usr/bin/env python3
import asyncio
import sys

from jobqueue import JobEvent, JobQueue, JobStatus, Settings

async def verify_retry_backoff():
    queue = JobQueue("verify-retry", Settings(CONCURRENCY=1, RETRY_DELAY_SECONDS=0.2, IDLE_INTERVAL_SECONDS=0.05))
    retry_times = []
    queue.subscribe(JobEvent.RETRIED, lambda event, job: retry_times.append(job.process_at))

    async def always_fails(ctx):
        raise RuntimeError(f"Simulated failure {ctx.attempts + 1}")

    queue.register_handler("fail_test", always_fails)

    # 1. Create a job with max_retries=3
    print("1. Creating job with max_retries=3...")
    job = queue.add("fail_test", {"task": "fail_test"}, max_retries=3)
    print(f"   Job created: {job.id}")

    # 2. Let it fail through its retry budget (0.2 + 0.4 + 0.8s of backoff)
    await queue.start()
    while queue.get(job.id).status != JobStatus.FAILED:
        await asyncio.sleep(0.05)
    await queue.shutdown()

    final = queue.get(job.id)
    print(f"2. Status: {final.status}, attempts: {final.attempts}, error: {final.error}")

    gaps = [(b - a).total_seconds() for a, b in zip(retry_times, retry_times[1:])]
    print(f"3. Gaps between scheduled retries: {[round(g, 2) for g in gaps]}")

    if final.attempts != 3:
        print(f"   FAILURE: Attempts should be 3, got {final.attempts}")
        sys.exit(1)
    if any(b <= a for a, b in zip(retry_times, retry_times[1:])):
        print("   FAILURE: process_at did not increase between retries")
        sys.exit(1)

    print("SUCCESS: Job retried with exponential backoff and then failed permanently.")

if __name__ == "__main__":
    asyncio.run(verify_retry_backoff())
