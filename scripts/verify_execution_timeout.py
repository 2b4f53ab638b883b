import asyncio
import sys
import time

from jobqueue import JobQueue, JobStatus, Settings

async def sleepy_job(ctx):
    ctx.log("Going to sleep for 5s")
    await asyncio.sleep(5)
    return {"woke": True}

async def quick_job(ctx):
    return {"quick": True}

async def verify_execution_timeout():
    queue = JobQueue("verify-timeout", Settings(CONCURRENCY=1, IDLE_INTERVAL_SECONDS=0.05))
    queue.register_handler("sleepy_job", sleepy_job)
    queue.register_handler("quick_job", quick_job)

    print("1. Creating job with timeout=0.5s and no retries...")
    job = queue.add("sleepy_job", {"task": "sleepy_job"}, timeout=0.5, max_retries=0, priority=1)
    follow_up = queue.add("quick_job", {})
    print(f"   Job created: {job.id}")

    print("2. Starting a single worker...")
    started = time.monotonic()
    await queue.start()

    while queue.get(follow_up.id).status != JobStatus.COMPLETED:
        await asyncio.sleep(0.01)
    elapsed = time.monotonic() - started
    await queue.shutdown()

    final = queue.get(job.id)
    print(f"3. Timed-out job status: {final.status} ({final.error_type}: {final.error})")
    print(f"   Follow-up job finished after {elapsed:.2f}s")

    if final.status != JobStatus.FAILED or final.error_type != "JobTimeoutError":
        print("FAILURE: Job should have failed with JobTimeoutError")
        sys.exit(1)
    if elapsed > 2:
        print("FAILURE: Worker was held past the timeout")
        sys.exit(1)

    print("SUCCESS: Timeout enforced and worker released.")

if __name__ == "__main__":
    asyncio.run(verify_execution_timeout())
