"""해싱 유틸리티 유닛 테스트"""
from src.utils.hash_utils import canonical_json, generate_run_signature, hash_string


class TestHashUtils:
    """해싱 유틸리티 테스트"""

    def test_hash_string_consistency(self):
        """동일한 입력에 대한 일관성"""
        assert hash_string("repair guide") == hash_string("repair guide")

    def test_hash_string_different_inputs(self):
        """다른 입력에 대한 다른 해시"""
        assert hash_string("repair") != hash_string("repairs")

    def test_hash_string_length(self):
        """MD5 해시 길이 확인 (32자)"""
        assert len(hash_string("test")) == 32

    def test_canonical_json_sorts_keys(self):
        """키 순서와 무관한 직렬화"""
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_run_signature_format(self):
        """signature 포맷 확인"""
        signature = generate_run_signature({"mode": "any"})
        assert signature.startswith("run:")
        assert len(signature) == 36  # "run:" (4) + MD5 (32)

    def test_run_signature_ignores_key_order(self):
        assert generate_run_signature({"a": 1, "b": 2}) == generate_run_signature({"b": 2, "a": 1})

    def test_run_signature_changes_with_values(self):
        assert generate_run_signature({"pages": 1}) != generate_run_signature({"pages": 2})
