"""
tests/plugins/cloudformation/test_cfn_rules.py - plugins/cloudformation/rules.py 테스트
"""

import pytest

from plugins.cloudformation.rules import (
    DetectionRule,
    RuleEngine,
    ServerlessDeploymentBucketRule,
    default_rules,
    has_serverless_deployment_bucket,
)
from plugins.cloudformation.types import ResourceRecord, StackDetail

REASON = "Contains resource with logical ID 'ServerlessDeploymentBucket'"

BUCKET = ResourceRecord(logical_id="ServerlessDeploymentBucket", resource_type="AWS::S3::Bucket")
LAMBDA = ResourceRecord(logical_id="HelloLambdaFunction", resource_type="AWS::Lambda::Function")


class StageTagRule(DetectionRule):
    """테스트용: STAGE 태그가 있으면 매칭"""

    @property
    def name(self) -> str:
        return "StageTag"

    def check(self, resources, detail):
        if detail is not None and "STAGE" in detail.tags:
            return True, "Has STAGE tag"
        return False, ""


class TestHasServerlessDeploymentBucket:
    """has_serverless_deployment_bucket 테스트"""

    def test_match(self):
        assert has_serverless_deployment_bucket([LAMBDA, BUCKET]) is True

    def test_empty(self):
        assert has_serverless_deployment_bucket([]) is False

    @pytest.mark.parametrize(
        "resource",
        [
            ResourceRecord(logical_id="ServerlessDeploymentBucket", resource_type="AWS::S3::BucketPolicy"),
            ResourceRecord(logical_id="serverlessDeploymentBucket", resource_type="AWS::S3::Bucket"),
            ResourceRecord(logical_id="ServerlessDeploymentBucketPolicy", resource_type="AWS::S3::Bucket"),
            ResourceRecord(logical_id=None, resource_type="AWS::S3::Bucket"),
            ResourceRecord(logical_id="ServerlessDeploymentBucket", resource_type=None),
        ],
    )
    def test_requires_exact_id_and_type(self, resource):
        """logical ID와 타입이 모두 정확히 일치해야 함"""
        assert has_serverless_deployment_bucket([resource]) is False


class TestServerlessDeploymentBucketRule:
    """ServerlessDeploymentBucketRule 테스트"""

    def test_name(self):
        assert ServerlessDeploymentBucketRule().name == "ServerlessDeploymentBucket"

    def test_match_reason(self):
        assert ServerlessDeploymentBucketRule().check([BUCKET], None) == (True, REASON)

    def test_no_match(self):
        assert ServerlessDeploymentBucketRule().check([LAMBDA], None) == (False, "")

    def test_pure(self):
        """입력을 변경하지 않고 같은 결과 반환"""
        rule = ServerlessDeploymentBucketRule()
        resources = [BUCKET]

        assert rule.check(resources, None) == rule.check(resources, None)
        assert resources == [BUCKET]


class TestRuleEngine:
    """RuleEngine 테스트"""

    def test_default_rules(self):
        engine = RuleEngine()

        assert len(engine.rules) == 1
        assert isinstance(engine.rules[0], ServerlessDeploymentBucketRule)
        assert len(default_rules()) == 1

    def test_evaluate_match(self):
        verdict = RuleEngine().evaluate([LAMBDA, BUCKET])

        assert verdict.is_match is True
        assert verdict.reasons == (REASON,)

    def test_evaluate_no_match(self):
        verdict = RuleEngine().evaluate([LAMBDA], StackDetail())

        assert verdict.is_match is False
        assert verdict.reasons == ()

    def test_reasons_in_registration_order(self):
        """여러 규칙이 매칭되면 등록 순서대로 사유 수집"""
        engine = RuleEngine()
        engine.register(StageTagRule())

        verdict = engine.evaluate([BUCKET], StackDetail(tags={"STAGE": "dev"}))

        assert verdict.reasons == (REASON, "Has STAGE tag")

    def test_only_second_rule_matches(self):
        engine = RuleEngine()
        engine.register(StageTagRule())

        verdict = engine.evaluate([LAMBDA], StackDetail(tags={"STAGE": "dev"}))

        assert verdict.reasons == ("Has STAGE tag",)

    def test_duplicate_registration_allowed(self):
        """같은 규칙을 두 번 등록하면 사유도 두 번"""
        rule = ServerlessDeploymentBucketRule()
        engine = RuleEngine([rule])
        engine.register(rule)

        assert engine.evaluate([BUCKET]).reasons == (REASON, REASON)

    def test_empty_engine_never_matches(self):
        assert RuleEngine(rules=[]).evaluate([BUCKET]).is_match is False

    def test_rules_snapshot_is_immutable(self):
        """rules는 내부 목록의 복사본"""
        engine = RuleEngine()
        snapshot = engine.rules
        engine.register(StageTagRule())

        assert len(snapshot) == 1
        assert len(engine.rules) == 2

    def test_repr(self):
        assert "ServerlessDeploymentBucket" in repr(ServerlessDeploymentBucketRule())
