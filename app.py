import streamlit as st
import time
import pandas as pd

from hl7_ack import AckResult
from hl7_errors import HL7SendError
from hl7_header import parse_message
from mllp_session import STRATEGIES, MLLPSession
from sender_config import load_config, save_config


def send_hl7_message(message: str, host: str, port: int, timeout=10, strategy='whole'):
    """Validate, send over MLLP and interpret the ACK. Returns (header, ack)."""
    segments, header = parse_message(message)
    with MLLPSession(host, port, timeout=timeout, strategy=strategy) as session:
        return header, session.exchange(segments)


def show_ack_status(ack):
    label = f"ACK Status: {ack.code or '(empty)'}"
    if ack.result is AckResult.ACCEPTED:
        st.success(f"✅ {label} (Application Accept) - {ack.description}")
    elif ack.result in (AckResult.APPLICATION_ERROR, AckResult.REJECTED_FORMAT):
        st.error(f"❌ {label} - {ack.description}")
    else:
        st.warning(f"⚠️ Unknown {label} - {ack.description}")


# --- Streamlit UI ---
st.set_page_config(page_title="HL7 MLLP Test Sender", layout="wide")
st.title("\U0001F4E4 HL7 MLLP Test Sender")

if "metrics_history" not in st.session_state:
    st.session_state["metrics_history"] = []

try:
    config = load_config()
except HL7SendError as e:
    st.error(str(e))
    st.stop()

col1, col2, col3, col4 = st.columns([2, 1, 1, 1])
host = col1.text_input("Target Host", config['HOST'])
port = col2.number_input("Target Port", value=int(config['PORT']), min_value=1, max_value=65535, step=1)
wait_forever = col3.checkbox("No timeout", value=config['TIMEOUT'] is None)
timeout = col3.number_input("Timeout (s)", value=float(config['TIMEOUT'] or 10), min_value=0.1, step=1.0,
                            disabled=wait_forever)
if wait_forever:
    timeout = None
strategies = sorted(STRATEGIES)
strategy = col4.selectbox("Send Strategy", strategies, index=strategies.index(config['STRATEGY']))

if st.button("Save Host/Port as Default"):
    try:
        save_config(host, int(port))
    except HL7SendError as e:
        st.error(str(e))
    else:
        st.success(f"Saved default HOST={host}, PORT={int(port)}.")

hl7_input = st.text_area("HL7 Message", height=300, placeholder="Paste your HL7 message here...")
uploaded_file = st.file_uploader("Or upload HL7 text file", type=["txt", "hl7"], accept_multiple_files=False)

if st.button("Send HL7 Message"):
    file_content = ""
    if uploaded_file:
        file_content = uploaded_file.getvalue().decode(config['ENCODING'], errors="replace")
    message = file_content if file_content.strip() else hl7_input

    if not message.strip():
        st.warning("Please provide a valid HL7 message via text or file upload.")
    else:
        start = time.perf_counter()
        try:
            with st.spinner(f"Sending message to {host}:{int(port)}..."):
                header, ack = send_hl7_message(message, host, int(port), timeout=timeout, strategy=strategy)
        except HL7SendError as e:
            st.error(f"{type(e).__name__}: {e}")
        else:
            duration = time.perf_counter() - start
            show_ack_status(ack)

            st.subheader("\U0001F4C4 Sent Header (MSH)")
            header_df = pd.DataFrame(header.items(), columns=["Field", "Value"])
            st.dataframe(header_df, hide_index=True, use_container_width=True)

            st.subheader("\U0001F4C4 Raw ACK Message")
            st.code("\r".join(ack.segments), language="hl7")

            st.subheader("\U0001F4C4 Parsed ACK Segments")
            for segment in ack.segments:
                st.text(segment)
            if ack.message_control_id and ack.message_control_id != header.message_control_id:
                st.warning(f"ACK control id {ack.message_control_id} does not match sent "
                           f"control id {header.message_control_id}.")

            st.session_state["metrics_history"].append({
                "timestamp": time.strftime("%H:%M:%S"),
                "send_time_ms": duration * 1000,
                "status": ack.code,
            })

    history_df = pd.DataFrame(st.session_state["metrics_history"])
    if not history_df.empty:
        st.subheader("\U0001F4C8 Metrics")
        mcol1, mcol2 = st.columns(2)
        mcol1.metric("Messages sent", len(history_df))
        mcol2.metric("Avg send time (ms)", f"{history_df['send_time_ms'].mean():.2f}")
        st.line_chart(history_df.set_index("timestamp")["send_time_ms"])
