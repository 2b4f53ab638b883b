from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response

router = APIRouter()

# Metrics Definitions
QUEUE_DEPTH = Gauge('job_queue_depth', 'Number of jobs in WAITING state', ['queue'])
JOBS_INFLIGHT = Gauge('jobs_inflight', 'Number of jobs currently active', ['queue'])

JOB_ADDED_TOTAL = Counter('job_added_total', 'Total jobs enqueued', ['queue', 'job_type'])
JOB_DISPATCH_COUNT = Counter('job_dispatch_total', 'Total number of jobs claimed by workers', ['queue', 'job_type'])
JOB_COMPLETE_TOTAL = Counter('job_complete_total', 'Total jobs completed successfully', ['queue', 'job_type'])
JOB_FAILURES = Counter('job_failures_total', 'Total job failures', ['queue', 'job_type', 'type']) # type=retryable|final
JOB_TIMEOUTS = Counter('job_timeouts_total', 'Total job attempts that hit their timeout', ['queue', 'job_type'])
JOB_SWEPT_TOTAL = Counter('job_swept_total', 'Total terminal jobs removed by sweep', ['queue'])

JOB_START_DELAY = Histogram('job_start_delay_seconds', 'Time from process_at to claim', buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0])
JOB_DURATION = Histogram('job_duration_seconds', 'Time from claim to terminal outcome', ['queue'], buckets=[0.1, 1.0, 5.0, 10.0, 60.0, 120.0, 300.0])

@router.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
