import json

from groundwater_chatbot.conversation.context import ConversationContext, DialogState
from groundwater_chatbot.conversation.engine import ChatEngine, build_engine
from groundwater_chatbot.core.data_service import ServerFailure, TransportFailure
from groundwater_chatbot.messages import get_message


def test_blank_input_is_ignored(engine, service):
    reply = engine.handle_user_input("   ")
    assert reply.messages == []
    assert engine.state is DialogState.ASK_STATE
    assert service.calls == []


def test_reset_command_mid_dialog(engine):
    engine.handle_user_input("Bihar")
    engine.handle_user_input("Patna")
    assert engine.state is DialogState.ASK_YEAR

    reply = engine.handle_user_input("Start over")

    assert engine.state is DialogState.ASK_STATE
    assert engine.context == ConversationContext()
    assert reply.messages == [get_message("start")]


def test_reset_conversation(engine):
    engine.handle_user_input("Bihar latest")
    reply = engine.reset_conversation()
    assert reply.state is DialogState.ASK_STATE
    assert engine.context == ConversationContext()


def test_export_without_result(engine):
    reply = engine.handle_user_input("export csv")
    assert reply.messages == [get_message("export_none")]
    assert reply.export is None


def test_export_after_query_leaves_dialog_alone(engine, service):
    engine.handle_user_input("Bihar, Patna district, 2024 data")
    engine.handle_user_input("Punjab")
    assert engine.state is DialogState.ASK_DISTRICT_OR_LEVEL
    queries_before = len(service.queries)

    reply = engine.handle_user_input("EXPORT JSON")

    assert reply.messages == [get_message("export_json_ok")]
    assert reply.export.filename == "groundwater_data_Bihar___Patna.json"
    assert json.loads(reply.export.content)["location"] == "Bihar › Patna"
    assert engine.state is DialogState.ASK_DISTRICT_OR_LEVEL
    assert engine.context.state == "Punjab"
    assert len(service.queries) == queries_before


def test_failed_query_keeps_previous_result(engine, service):
    engine.handle_user_input("Bihar, Patna, 2024")
    first = engine.last_result

    service.query_error = ServerFailure("down", status=502)
    reply = engine.handle_user_input("Bihar, Gaya, 2023")

    assert reply.result is None
    assert engine.last_result is first
    assert engine.handle_user_input("export csv").export is not None


def test_metadata_failure_reports_connection_problem(engine, service):
    service.meta_error = TransportFailure("refused")
    reply = engine.handle_user_input("Bihar")

    assert reply.messages == [get_message("connection_failed")]
    assert engine.state is DialogState.ASK_STATE

    service.meta_error = None
    engine.handle_user_input("Bihar")
    assert engine.state is DialogState.ASK_DISTRICT_OR_LEVEL


def test_assisted_selection_through_engine(engine, service):
    reply = engine.apply_assisted_selection("Bihar", "Gaya", years=[2023])

    assert reply.error is None
    assert service.queries[-1] == {"state": "Bihar", "district": "Gaya", "block": None, "years": [2023]}
    assert engine.last_result is reply.result
    assert engine.state is DialogState.ASK_STATE


def test_assisted_selection_validation_error(engine, service):
    reply = engine.apply_assisted_selection("Bihar", "Gayaa")
    assert reply.error == get_message("pick_district")
    assert service.queries == []


def test_assisted_selection_metadata_failure(engine, service):
    service.meta_error = TransportFailure("refused")
    reply = engine.apply_assisted_selection("Bihar")
    assert reply.error == get_message("connection_failed")


def test_build_engine_wires_client(service):
    engine = build_engine(service)
    assert isinstance(engine, ChatEngine)
    assert engine.metadata.client is service
    assert engine.machine.executor.client is service
    assert engine.start_message() == get_message("start")
