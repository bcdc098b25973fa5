"""SpecAlign - WebSocket API Routes

批处理进度实时推送端点
"""
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from specalign.services.progress import get_progress_tracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])

# 轮询间隔（秒）
POLL_INTERVAL_S = 0.5


@router.websocket("/progress/{batch_id}")
async def batch_progress_ws(websocket: WebSocket, batch_id: str):
    """
    批次进度 WebSocket 端点

    客户端可先连接再发起生成 / 执行请求；批次事件出现前保持等待，
    事件变化时推送 progress 消息；批次结束（completed / failed）后推送 complete 并关闭。
    """
    await websocket.accept()
    logger.info(f"WebSocket 连接建立: batch={batch_id}")
    tracker = get_progress_tracker()
    last_sent = None

    try:
        while True:
            event = tracker.latest(batch_id)
            if event is not None and event != last_sent:
                await websocket.send_json({"type": "progress", **event.model_dump(mode="json")})
                last_sent = event

                if event.is_terminal:
                    await websocket.send_json({
                        "type": "complete",
                        "batch_id": batch_id,
                        "status": event.phase.value,
                        "total": event.total,
                        "completed": event.completed,
                        "message": event.message,
                    })
                    break

            await asyncio.sleep(POLL_INTERVAL_S)

    except WebSocketDisconnect:
        logger.info(f"WebSocket 客户端断开: batch={batch_id}")
    except Exception as e:
        logger.error(f"WebSocket 错误: {e}")
        try:
            await websocket.send_json({"type": "error", "batch_id": batch_id, "message": str(e)})
        except RuntimeError:
            logger.debug("WebSocket 已关闭，错误消息未发送")
    else:
        await websocket.close()
