"""Translation queue round trip against LocalStack SQS."""

from __future__ import annotations

import json

from showsync.models.discussion import TranslationJob
from showsync.models.showset import Language
from showsync.persistence.sqs_backend import SQSTranslationQueue
from tests.integration.conftest import LOCALSTACK_URL, REGION, skip_no_localstack


@skip_no_localstack
def test_enqueued_job_is_received(localstack_sqs):
    queue_url = localstack_sqs.create_queue(QueueName="showsync-translate-inttest")["QueueUrl"]
    localstack_sqs.purge_queue(QueueUrl=queue_url)
    queue = SQSTranslationQueue(queue_url=queue_url, region=REGION, endpoint_url=LOCALSTACK_URL)

    queue.enqueue(TranslationJob(
        note_id="n-int", show_set_id="SS-07-01", original_lang=Language.EN,
        original_content="Move the truss", target_languages=[Language.ZH, Language.ZH_TW],
    ))

    messages = localstack_sqs.receive_message(QueueUrl=queue_url, WaitTimeSeconds=2).get("Messages", [])
    assert [json.loads(m["Body"])["noteId"] for m in messages] == ["n-int"]
