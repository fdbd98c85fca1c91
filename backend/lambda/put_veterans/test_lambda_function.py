"""test_lambda_function.py — Mock-based tests for put_veterans.

Covers required-field and consent validation, story normalisation and the
DynamoDB conditional put (including the duplicate-key conflict path).
All locally runnable without AWS credentials.

Run: python3 -m pytest test_lambda_function.py -v
"""

from __future__ import annotations

import importlib.util
import json
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "shared_layer", "python"))

_spec = importlib.util.spec_from_file_location(
    "put_veterans",
    os.path.join(os.path.dirname(__file__), "lambda_function.py"),
)
put_veterans = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(put_veterans)

from stories_shared import config  # noqa: E402
from stories_shared.serialization import _deserialize  # noqa: E402


def _valid_body(**overrides):
    body = {
        "name": "  Jane Doe ",
        "location": "Austin, TX",
        "serviceYears": "1968-1972",
        "branch": "Army",
        "story": "Served two tours.",
        "consent": True,
    }
    body.update(overrides)
    return body


def _make_event(body=None, method="POST"):
    event = {
        "requestContext": {"http": {"method": method, "path": "/api/v1/veterans"}},
        "headers": {"content-type": "application/json"},
    }
    if body is not None:
        event["body"] = json.dumps(body) if isinstance(body, dict) else body
    return event


class _DdbTestCase(unittest.TestCase):
    def setUp(self):
        self.ddb = MagicMock()
        self.ddb.put_item.return_value = {}
        provider = put_veterans.ddb_provider()
        provider._client = self.ddb
        patcher = patch.object(put_veterans, "_DDB", provider)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _stored_item(self):
        return _deserialize(self.ddb.put_item.call_args[1]["Item"])


class SubmitTests(_DdbTestCase):
    def test_valid_submission_returns_201(self):
        resp = put_veterans.lambda_handler(_make_event(_valid_body(age="71")), None)

        self.assertEqual(resp["statusCode"], 201)
        body = json.loads(resp["body"])
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Story submitted successfully")
        story = body["veteranStory"]
        self.assertEqual(body["id"], story["story_id"])
        self.assertEqual(story["name"], "Jane Doe")
        self.assertEqual(story["age"], 71)
        self.assertEqual(story["status"], "pending")
        self.assertIs(story["consent"], True)
        self.assertEqual(story["country"], "United States")
        self.assertTrue(story["submittedAt"].endswith("Z"))
        self.assertIsNone(story["rank"])
        self.assertIsNone(story["photoId"])

    def test_stored_item_matches_response(self):
        resp = put_veterans.lambda_handler(
            _make_event(_valid_body(country=" Canada ", photoId="a" * 32, rank=" Sgt ")), None,
        )
        story = json.loads(resp["body"])["veteranStory"]
        stored = self._stored_item()

        self.assertEqual(stored["story_id"], story["story_id"])
        self.assertEqual(stored["country"], "Canada")
        self.assertEqual(stored["rank"], "Sgt")
        self.assertEqual(stored["photoId"], "a" * 32)
        kwargs = self.ddb.put_item.call_args[1]
        self.assertEqual(kwargs["ConditionExpression"], "attribute_not_exists(story_id)")

    def test_client_supplied_status_is_ignored(self):
        resp = put_veterans.lambda_handler(_make_event(_valid_body(status="approved")), None)
        self.assertEqual(json.loads(resp["body"])["veteranStory"]["status"], "pending")

    def test_story_ids_are_unique(self):
        ids = {
            json.loads(put_veterans.lambda_handler(_make_event(_valid_body()), None)["body"])["id"]
            for _ in range(5)
        }
        self.assertEqual(len(ids), 5)

    def test_unparseable_age_is_null(self):
        for age in ("old", "", None, True, "1e400"):
            resp = put_veterans.lambda_handler(_make_event(_valid_body(age=age)), None)
            self.assertEqual(resp["statusCode"], 201, age)
            self.assertIsNone(json.loads(resp["body"])["veteranStory"]["age"], age)

    def test_numeric_age_is_truncated(self):
        resp = put_veterans.lambda_handler(_make_event(_valid_body(age=70.9)), None)
        self.assertEqual(json.loads(resp["body"])["veteranStory"]["age"], 70)


class ValidationTests(_DdbTestCase):
    def test_missing_fields_are_listed_in_order(self):
        body = _valid_body()
        del body["location"]
        body["story"] = "   "
        resp = put_veterans.lambda_handler(_make_event(body), None)

        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(
            json.loads(resp["body"])["error"], "Missing required fields: location, story",
        )
        self.ddb.put_item.assert_not_called()

    def test_false_consent_counts_as_missing(self):
        resp = put_veterans.lambda_handler(_make_event(_valid_body(consent=False)), None)
        self.assertEqual(resp["statusCode"], 400)
        self.assertIn("consent", json.loads(resp["body"])["error"])
        self.ddb.put_item.assert_not_called()

    def test_negative_consent_string_is_rejected(self):
        for consent in ("false", "No", " off ", "0"):
            resp = put_veterans.lambda_handler(_make_event(_valid_body(consent=consent)), None)
            self.assertEqual(resp["statusCode"], 400, consent)
            self.assertEqual(
                json.loads(resp["body"])["error"], "Consent is required to submit story",
            )
        self.ddb.put_item.assert_not_called()

    def test_truthy_consent_string_is_accepted(self):
        resp = put_veterans.lambda_handler(_make_event(_valid_body(consent="yes")), None)
        self.assertEqual(resp["statusCode"], 201)

    def test_invalid_json_returns_400(self):
        for raw in ("{not json", "[1, 2]", ""):
            resp = put_veterans.lambda_handler(_make_event(raw), None)
            self.assertEqual(resp["statusCode"], 400, raw)
            self.assertEqual(json.loads(resp["body"])["error"], "Invalid JSON in request body")

    def test_missing_body_returns_400(self):
        resp = put_veterans.lambda_handler(_make_event(), None)
        self.assertEqual(resp["statusCode"], 400)


class ConflictAndFailureTests(_DdbTestCase):
    def test_conditional_check_failure_returns_409(self):
        self.ddb.put_item.side_effect = ClientError(
            {"Error": {"Code": "ConditionalCheckFailedException", "Message": "exists"}}, "PutItem",
        )
        resp = put_veterans.lambda_handler(_make_event(_valid_body()), None)

        self.assertEqual(resp["statusCode"], 409)
        body = json.loads(resp["body"])
        self.assertEqual(body["error"], "A story with similar content already exists")
        self.assertEqual(body["error_envelope"]["code"], "CONFLICT")

    def test_dynamodb_failure_returns_generic_500(self):
        self.ddb.put_item.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "PutItem",
        )
        with patch.object(config, "EXPOSE_ERROR_DETAILS", False):
            resp = put_veterans.lambda_handler(_make_event(_valid_body()), None)

        self.assertEqual(resp["statusCode"], 500)
        body = json.loads(resp["body"])
        self.assertEqual(body["error"], "Internal Server Error")
        self.assertEqual(body["message"], "Failed to process request")

    def test_development_mode_exposes_error_text(self):
        self.ddb.put_item.side_effect = RuntimeError("table schema mismatch")
        with patch.object(config, "EXPOSE_ERROR_DETAILS", True):
            resp = put_veterans.lambda_handler(_make_event(_valid_body()), None)

        self.assertEqual(resp["statusCode"], 500)
        self.assertEqual(json.loads(resp["body"])["message"], "table schema mismatch")


class MethodTests(unittest.TestCase):
    def test_request_parse_is_logged(self):
        with self.assertLogs(level="INFO") as logs:
            put_veterans.lambda_handler(_make_event({}), None)
        self.assertTrue(any("request parse: method=POST" in line for line in logs.output))

    def test_options_returns_204(self):
        resp = put_veterans.lambda_handler(_make_event(method="OPTIONS"), None)
        self.assertEqual(resp["statusCode"], 204)
        self.assertIn("Access-Control-Allow-Origin", resp["headers"])

    def test_get_returns_405(self):
        resp = put_veterans.lambda_handler(_make_event(method="GET"), None)
        self.assertEqual(resp["statusCode"], 405)


if __name__ == "__main__":
    unittest.main()
