import asyncio

import pytest
from conftest import FakeFetcher, error_page, job_page

from devnetjobs.errors import FetchError, NoJobsFoundError
from devnetjobs.harvest import HarvestConfig, fetch_job_details, harvest_jobs
from devnetjobs.models import Job
from devnetjobs.scraper import run_pipeline


def make_fetch_job(failing=(), delays=None):
    async def fetch_job(job_id):
        if delays:
            await asyncio.sleep(delays.get(job_id, 0))
        if job_id in failing:
            raise FetchError(job_id, "Timeout 15000ms exceeded")
        return Job(external_id=job_id, title=f"Job {job_id}")

    return fetch_job


class TestHarvest:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_the_batch(self):
        ids = [str(i) for i in range(110, 100, -1)]

        output = await harvest_jobs(ids, make_fetch_job(failing={"105"}), HarvestConfig(batch_size=10))

        assert output.total_jobs == 9
        assert [j.external_id for j in output.jobs] == [i for i in ids if i != "105"]

    @pytest.mark.asyncio
    async def test_keeps_id_order_not_completion_order(self):
        ids = ["9", "8", "7", "6", "5"]
        delays = {"9": 0.01, "8": 0.0, "7": 0.005, "6": 0.002, "5": 0.0}

        output = await harvest_jobs(ids, make_fetch_job(delays=delays), HarvestConfig(batch_size=3))

        assert [j.external_id for j in output.jobs] == ids

    @pytest.mark.asyncio
    async def test_none_results_are_dropped(self):
        async def fetch_job(job_id):
            return None if job_id == "2" else Job(external_id=job_id)

        output = await harvest_jobs(["3", "2", "1"], fetch_job)
        assert [j.external_id for j in output.jobs] == ["3", "1"]
        assert output.to_dict()["totalJobs"] == 2

    @pytest.mark.asyncio
    async def test_batches_run_one_after_another(self):
        in_flight = 0
        peak = 0

        async def fetch_job(job_id):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            return Job(external_id=job_id)

        output = await harvest_jobs([str(i) for i in range(25)], fetch_job, HarvestConfig(batch_size=4))

        assert peak <= 4
        assert output.total_jobs == 25

    @pytest.mark.asyncio
    async def test_empty_input(self):
        output = await harvest_jobs([], make_fetch_job())
        assert output.jobs == []
        assert output.scraped_at.endswith("Z")


class TestFetchJobDetails:
    @pytest.mark.asyncio
    async def test_forbidden_page_is_excluded(self, cfg, detail_url):
        fetcher = FakeFetcher(
            {
                detail_url(501): job_page(title="Field Officer"),
                detail_url(500): job_page(title="403 - Forbidden: Access is denied."),
                detail_url(499): job_page(title="Data Analyst"),
            }
        )

        async def fetch_job(job_id):
            return await fetch_job_details(fetcher, job_id, cfg)

        output = await harvest_jobs(["501", "500", "499"], fetch_job)

        assert [j.external_id for j in output.jobs] == ["501", "499"]
        assert output.total_jobs == 2

    @pytest.mark.asyncio
    async def test_sets_canonical_url(self, cfg, detail_url):
        fetcher = FakeFetcher({detail_url(77): job_page()})
        job = await fetch_job_details(fetcher, "77", cfg)
        assert job.original_url == "https://devnetjobsindia.org/JobDescription.aspx?Job_Id=77"


class TestPipeline:
    @pytest.mark.asyncio
    async def test_end_to_end(self, cfg, detail_url):
        pages = {detail_url(i): error_page() for i in range(0, 121)}
        pages[detail_url(120)] = job_page(title="Newest")
        pages[detail_url(118)] = job_page(title="403 - Forbidden")
        pages[detail_url(117)] = job_page(title="Older")
        fetcher = FakeFetcher(pages, listing=["https://devnetjobsindia.org/JobDescription.aspx?Job_Id=120"])

        output = await run_pipeline(fetcher, cfg)

        # 118 passes the probe (it has a heading) but is a soft error page.
        assert [j.title for j in output.jobs] == ["Newest", "Older"]
        assert fetcher.max_in_flight <= cfg.scan_batch_size

    @pytest.mark.asyncio
    async def test_zero_ids_is_fatal(self, cfg):
        fetcher = FakeFetcher(listing=[])
        with pytest.raises(NoJobsFoundError):
            await run_pipeline(fetcher, cfg)

    @pytest.mark.asyncio
    async def test_limit_is_passed_to_the_scan(self, cfg, detail_url):
        pages = {detail_url(i): job_page(title=f"Job {i}") for i in range(4230, 4243)}
        fetcher = FakeFetcher(pages)

        output = await run_pipeline(fetcher, cfg, limit=3)

        # Bootstrap fails (empty listing) so the scan starts at the fallback id.
        assert [j.external_id for j in output.jobs] == ["4242", "4241", "4240"]
