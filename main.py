# main.py
import io
import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from backend import DataManager, ExportBlockedError, PrioritizationConfig, read_rows
from records import DATASET_ORDER
from settings import configure_logging, get_settings

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Data Alchemist")

# Enable CORS for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global DataManager instance holding the session's datasets in memory
global_data_manager = None


def get_or_create_data_manager() -> DataManager:
    global global_data_manager
    if global_data_manager is None:
        global_data_manager = DataManager()
    return global_data_manager


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message, **extra})


def validation_payload(dm: DataManager) -> Dict[str, Any]:
    report = dm.validate_all()
    return {
        "status": "success",
        "errors": report.to_dicts(),
        "summary": {
            **dm.summary(),
            "error_count": len(report),
            "errors_by_kind": report.count_by_kind(),
        },
    }


# Accept any subset of the three files; each one replaces its dataset.
# Decodes with pandas, so it stays a plain def (runs in the threadpool)
@app.post("/upload")
def upload_files(
    clients: Optional[UploadFile] = File(None),
    workers: Optional[UploadFile] = File(None),
    tasks: Optional[UploadFile] = File(None),
):
    uploads = {"clients": clients, "workers": workers, "tasks": tasks}
    if all(upload is None for upload in uploads.values()):
        return error_response(400, "No files uploaded")

    max_bytes = get_settings().max_upload_bytes
    try:
        decoded = {}
        for dataset, upload in uploads.items():
            if upload is None:
                continue
            content = upload.file.read()
            if len(content) > max_bytes:
                return error_response(413, f"{upload.filename} is too large. Maximum size is {max_bytes} bytes.")
            decoded[dataset] = read_rows(io.BytesIO(content), filename=upload.filename, dataset=dataset)

        # only touch the session once every file decoded
        dm = get_or_create_data_manager()
        for dataset, rows in decoded.items():
            dm.load_rows(dataset, rows)

        payload = validation_payload(dm)
        payload["data"] = dm.datasets
        return payload
    except ValueError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception("Error in upload endpoint")
        return error_response(500, str(e))


# Replace a dataset with rows the caller already decoded
@app.put("/datasets/{name}")
async def replace_dataset(name: str, rows: List[Dict[str, Any]] = Body(...)):
    if name not in DATASET_ORDER:
        return error_response(404, f"Unknown dataset '{name}'")
    dm = get_or_create_data_manager()
    dm.load_rows(name, rows)
    return validation_payload(dm)


@app.delete("/datasets/{name}")
async def clear_dataset(name: str):
    if name not in DATASET_ORDER:
        return error_response(404, f"Unknown dataset '{name}'")
    dm = get_or_create_data_manager()
    dm.clear(name)
    return validation_payload(dm)


@app.get("/validate")
async def validate():
    try:
        return validation_payload(get_or_create_data_manager())
    except Exception as e:
        logger.exception("Error in validate endpoint")
        return error_response(500, str(e))


@app.get("/prioritization")
async def get_prioritization():
    return {"status": "success", "prioritization": get_or_create_data_manager().prioritization.to_dict()}


@app.post("/prioritization")
async def set_prioritization(request: Dict[str, Any] = Body(...)):
    dm = get_or_create_data_manager()
    if "taskEfficiency" not in request:
        return error_response(400, "taskEfficiency is required")
    try:
        if "clientPriority" in request:
            dm.prioritization = PrioritizationConfig(
                client_priority=request["clientPriority"],
                task_efficiency=request["taskEfficiency"],
            )
        else:
            dm.set_prioritization(request["taskEfficiency"])
    except ValueError as e:
        return error_response(400, str(e))
    return {"status": "success", "prioritization": dm.prioritization.to_dict()}


# Export is only allowed once the validation report is empty
@app.post("/export")
async def export_data():
    dm = get_or_create_data_manager()
    try:
        output_dir = dm.export_all(get_settings().export_dir)
    except ExportBlockedError as e:
        return error_response(409, str(e), errors=e.report.to_dicts())
    except Exception as e:
        logger.exception("Error in export endpoint")
        return error_response(500, str(e))

    exported_files = []
    for name in [f"{dataset}.csv" for dataset in DATASET_ORDER] + ["rules.json"]:
        path = os.path.join(output_dir, name)
        if name.endswith(".csv") and name[:-4] not in dm.datasets:
            continue
        if os.path.exists(path):
            exported_files.append({"name": name, "path": path, "type": name.rsplit(".", 1)[1]})

    return {
        "status": "success",
        "message": f"Data exported successfully to {output_dir}",
        "export_directory": output_dir,
        "files": exported_files,
        "summary": {"total_files": len(exported_files), **dm.summary()},
    }


# Download individual exported files
@app.get("/download/{filename}")
async def download_file(filename: str):
    file_path = os.path.join(get_settings().export_dir, os.path.basename(filename))
    if not os.path.exists(file_path):
        return error_response(404, "File not found")
    return FileResponse(path=file_path, media_type="application/octet-stream", filename=os.path.basename(filename))
