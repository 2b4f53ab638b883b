from typing import Annotated

from fastapi import Depends, Request

from jobqueue.queue import JobQueue

def get_job_queue(request: Request) -> JobQueue:
    return request.app.state.queue

# Dependency for the queue the app was built around
QueueDep = Annotated[JobQueue, Depends(get_job_queue)]
