from walletgate.schemas.auth import IdentitySummary, MeResponse, VerifyResponse


class TestCustomBaseModel:
    def test_none_falls_back_to_default(self):
        summary = IdentitySummary(id="x", fullName=None, email=None)
        assert summary.fullName == ""
        assert summary.email == ""

    def test_scalar_coercion(self):
        me = MeResponse(identityId=123, role="USER")
        assert me.identityId == "123"

    def test_required_field_gets_zero_value(self):
        response = VerifyResponse(token=None)
        assert response.token == ""
        assert response.tokenType == "bearer"
