import io
import json
from pathlib import Path

import pandas as pd
import streamlit as st
import yaml

from flatlayout.checker import check
from flatlayout.errors import FlatLayoutError
from flatlayout.export import dumps_payload, table_to_dataframe
from flatlayout.formatter import format_tables
from flatlayout.layout.descriptor import describe
from flatlayout.layout.loader import descriptor_from_mapping, sample_descriptor
from flatlayout.lines import split_lines
from flatlayout.parser import parse
from flatlayout.report import summarize_report


def _load_payload(name: str, raw: bytes) -> dict:
    if Path(name).suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(io.BytesIO(raw))
    return json.loads(raw)


def main() -> None:
    st.title("Flat layout viewer")
    st.caption("Upload a descriptor and a data file to inspect the layout, parsed tables, and checks.")
    st.session_state.setdefault("check_logs", [])

    descriptor_file = st.file_uploader("Descriptor (json/yaml)", type=["json", "yml", "yaml"])
    if descriptor_file:
        payload = _load_payload(descriptor_file.name, descriptor_file.read())
    else:
        st.info("No descriptor uploaded; using the built-in sample.")
        payload = sample_descriptor()
    try:
        descriptor = descriptor_from_mapping(payload)
    except FlatLayoutError as exc:
        st.error(f"Invalid descriptor: {exc}")
        return

    tabs = st.tabs(["Layout", "Parse", "Check"])

    with tabs[0]:
        if descriptor.doc:
            st.write(descriptor.doc)
        for idx, section in enumerate(descriptor.sections):
            st.subheader(f"Section {idx}: {section.role}, {section.repeat}")
            if section.doc:
                st.caption(section.doc)
            st.dataframe(pd.DataFrame(describe(descriptor, idx)))
        st.code(f"terminator: {descriptor.terminator!r}")

    data_file = st.file_uploader("Data file", type=["txt", "dat", "prn"], key="data_file")
    if not data_file:
        return
    lines = split_lines(data_file.read().decode(st.sidebar.text_input("Encoding", "utf-8")))
    try:
        tables = parse(lines, descriptor)
    except FlatLayoutError as exc:
        st.error(f"Parse failed: {exc}")
        return

    with tabs[1]:
        st.info(f"Read {len(lines)} lines")
        for idx, (section, table) in enumerate(zip(descriptor.sections, tables)):
            st.markdown(f"**Section {idx}** ({len(table)} rows)")
            st.dataframe(table_to_dataframe(table, section), height=240)
        st.download_button("Download JSON", dumps_payload(tables), file_name="tables.json")
        try:
            rewritten = "\n".join(format_tables(tables, descriptor)) + "\n"
        except FlatLayoutError as exc:
            st.warning(f"Tables cannot be re-formatted: {exc}")
        else:
            st.download_button(
                "Download re-formatted file", rewritten.encode(), file_name=data_file.name
            )

    with tabs[2]:
        report = check(tables, descriptor)
        summary = summarize_report(report)
        if report.passed:
            st.success(f"All {summary['checked']} checks passed")
        else:
            st.error(f"{summary['failed']} of {summary['checked']} checks failed")
            st.dataframe(
                pd.DataFrame(
                    [
                        {
                            "section": c.section_index,
                            "row": c.row_index,
                            "field": str(c.field),
                            "constraint": c.constraint,
                            "value": str(c.value),
                        }
                        for c in report.failures
                    ]
                )
            )
        st.json(summary)
        st.session_state["check_logs"].append(
            {"file": data_file.name, "checked": summary["checked"], "failed": summary["failed"]}
        )
        st.markdown("**Recent checks**")
        st.dataframe(pd.DataFrame(st.session_state["check_logs"]).tail(5))


if __name__ == "__main__":
    main()
