import httpx
import pytest

from sei_mcp_gateway.assistant import AssistantError, ChatAssistant

WALLET = "0x" + "ab" * 20
CONTRACT = "0x" + "34" * 20
TX_HASH = "0x" + "c" * 64


class StubLlm:
    def __init__(self, reply="Sei is a layer 1 chain.", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.mark.asyncio
async def test_wallet_question_returns_formatted_balance(make_client, rpc_server):
    rpc_server.results["get_balance"] = {"address": WALLET, "network": "sei", "wei": "2500000000000000000", "ether": "2.5"}
    client = make_client()
    assistant = ChatAssistant(client)

    reply = await assistant.answer(f"Check balance for wallet {WALLET}")

    assert "Wallet Balance" in reply
    assert "2.5000 SEI" in reply
    assert rpc_server.calls[0][1] == {"address": WALLET, "network": "sei"}
    await client.close()


@pytest.mark.asyncio
async def test_wallet_question_without_address_asks_for_one(make_client, rpc_server):
    client = make_client()

    reply = await ChatAssistant(client).answer("what is my wallet balance?")

    assert "need a wallet address" in reply
    assert rpc_server.calls == []
    await client.close()


@pytest.mark.asyncio
async def test_token_flow_question_reports_unsupported_operation(make_client, rpc_server):
    client = make_client()

    reply = await ChatAssistant(client).answer("show token flows for USDC this week")

    assert "Token flow analysis is not implemented" in reply
    assert rpc_server.health_checks == 0
    await client.close()


@pytest.mark.asyncio
async def test_transaction_question_includes_receipt(make_client, rpc_server):
    rpc_server.results["get_transaction"] = {
        "hash": TX_HASH,
        "from": WALLET,
        "to": CONTRACT,
        "value": "1000000000000000000",
        "blockNumber": 100,
    }
    rpc_server.results["get_transaction_receipt"] = {
        "transactionHash": TX_HASH,
        "status": "0x0",
        "blockNumber": 100,
        "gasUsed": 50000,
        "from": WALLET,
        "to": CONTRACT,
        "logs": [],
    }
    client = make_client()

    reply = await ChatAssistant(client).answer(f"explain transaction {TX_HASH}")

    assert "Status: Reverted" in reply
    assert "1.0000 SEI" in reply
    assert rpc_server.methods() == ["get_transaction", "get_transaction_receipt"]
    await client.close()


@pytest.mark.asyncio
async def test_nft_question_fetches_metadata(make_client, rpc_server):
    rpc_server.results["get_nft_info"] = {"tokenURI": "ipfs://meta/9", "name": "Sei Punk #9", "owner": WALLET}
    client = make_client()

    reply = await ChatAssistant(client).answer(f"show nft {CONTRACT} token 9")

    assert "Sei Punk #9" in reply
    assert f"Owner: {WALLET}" in reply
    assert rpc_server.calls[0][1]["tokenId"] == "9"
    await client.close()


@pytest.mark.asyncio
async def test_connection_failure_is_mapped_to_friendly_message(make_client, rpc_server):
    rpc_server.health_status = 502
    client = make_client()

    reply = await ChatAssistant(client).answer(f"balance of {WALLET}")

    assert reply.startswith("Unable to connect to the blockchain network")
    await client.close()


@pytest.mark.asyncio
async def test_request_failure_is_mapped_to_friendly_message(make_client, rpc_server):
    rpc_server.results["get_balance"] = httpx.Response(400, text="bad")
    client = make_client()

    reply = await ChatAssistant(client).answer(f"balance of {WALLET}")

    assert reply.startswith("Request failed:")
    await client.close()


@pytest.mark.asyncio
async def test_rate_limit_is_mapped_to_friendly_message(make_client, rpc_server):
    client = make_client(max_requests=0)

    reply = await ChatAssistant(client).answer(f"balance of {WALLET}")

    assert reply.startswith("Too many requests")
    await client.close()


@pytest.mark.asyncio
async def test_recoverable_failures_are_retried_when_enabled(make_client, rpc_server):
    responses = [httpx.Response(503, text="busy")]

    def balance(params):
        return {"address": params["address"], "wei": "0", "ether": "0"}

    passthrough = rpc_server.handler

    async def handler(request):
        if request.method == "POST" and responses:
            return responses.pop()
        return await passthrough(request)

    rpc_server.results["get_balance"] = balance
    client = make_client(handler=handler)

    reply = await ChatAssistant(client, retry_attempts=2, retry_delay=0.0).answer(f"balance of {WALLET}")

    assert "Wallet Balance" in reply
    await client.close()


@pytest.mark.asyncio
async def test_general_question_uses_language_model(make_client):
    client = make_client()
    llm = StubLlm()

    reply = await ChatAssistant(client, llm=llm).answer("what is sei?")

    assert reply == "Sei is a layer 1 chain."
    assert "what is sei?" in llm.prompts[0]
    await client.close()


@pytest.mark.asyncio
async def test_general_question_without_language_model_lists_examples(make_client):
    client = make_client()

    reply = await ChatAssistant(client).answer("what is sei?")

    assert "Check balance for wallet" in reply
    await client.close()


@pytest.mark.asyncio
async def test_language_model_failure_is_reported(make_client):
    client = make_client()
    llm = StubLlm(error=AssistantError("quota exhausted"))

    reply = await ChatAssistant(client, llm=llm).answer("what is sei?")

    assert "couldn't work out" in reply
    await client.close()


@pytest.mark.asyncio
async def test_empty_question(make_client):
    client = make_client()

    assert await ChatAssistant(client).answer("   ") == "Please include a question for me to answer."
    await client.close()
