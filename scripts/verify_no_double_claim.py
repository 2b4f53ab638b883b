#!/usr/bin/env python3
import asyncio
import sys
from collections import Counter

from jobqueue import JobQueue, Settings

NUM_JOBS = 200
NUM_WORKERS = 20

async def verify_no_double_claim():
    executions = Counter()

    async def counting_handler(ctx):
        executions[ctx.id] += 1
        await asyncio.sleep(0.001)
        return ctx.payload

    queue = JobQueue("verify-double-claim", Settings(CONCURRENCY=NUM_WORKERS, IDLE_INTERVAL_SECONDS=0.01))
    queue.register_handler("concurrency_test", counting_handler)

    # 1. Create jobs
    print(f"1. Creating {NUM_JOBS} jobs...")
    job_ids = [queue.add("concurrency_test", {"i": i}).id for i in range(NUM_JOBS)]

    # 2. Let 20 workers race for them
    print(f"2. Starting {NUM_WORKERS} concurrent workers...")
    await queue.start()
    while queue.stats().completed < NUM_JOBS:
        await asyncio.sleep(0.01)
    await queue.shutdown()

    # 3. Analyze results
    doubles = {job_id: n for job_id, n in executions.items() if n > 1}
    missing = [job_id for job_id in job_ids if executions[job_id] == 0]
    print(f"3. Results: {sum(executions.values())} executions for {NUM_JOBS} jobs.")

    if doubles:
        print(f"FAILURE: {len(doubles)} jobs executed more than once! Double claim detected.")
        for job_id, n in doubles.items():
            print(f"   - {job_id}: {n} executions")
        sys.exit(1)
    if missing:
        print(f"FAILURE: {len(missing)} jobs never executed.")
        sys.exit(1)

    print("SUCCESS: Every job was claimed by exactly one worker.")

if __name__ == "__main__":
    asyncio.run(verify_no_double_claim())
