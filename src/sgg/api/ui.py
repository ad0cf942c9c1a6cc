"""Página HTML mínima para testar search, getrow e autoget pelo navegador."""
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["ui"])

PAGE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Google Sheets API</title>
<style>
body { font-family: sans-serif; max-width: 720px; margin: 2rem auto; }
label { display: block; margin-top: .5rem; }
input { width: 100%; padding: .3rem; }
nav button[aria-pressed="true"] { font-weight: bold; }
pre { background: #f3f3f3; padding: 1rem; overflow: auto; }
.hidden { display: none; }
</style>
</head>
<body>
<h1>Google Sheets API</h1>
<nav>
  <button type="button" data-mode="search" aria-pressed="true">Search</button>
  <button type="button" data-mode="getrow" aria-pressed="false">Get column</button>
  <button type="button" data-mode="autoget" aria-pressed="false">Autoget</button>
</nav>
<form id="form">
  <label>Sheet ID <input name="sheetId" required></label>
  <label>Sheet name <input name="sheetName" required></label>
  <label data-for="search">Row value <input name="rowValue"></label>
  <label data-for="search">Column value <input name="columnValue"></label>
  <label data-for="getrow" class="hidden">Column name <input name="columnName"></label>
  <label data-for="autoget" class="hidden"><input type="checkbox" name="reset" style="width:auto"> Reset status column</label>
  <p><button type="submit">Send</button></p>
</form>
<pre id="result"></pre>
<script>
let mode = "search";
const form = document.getElementById("form");
const result = document.getElementById("result");

document.querySelectorAll("nav button").forEach((button) => {
  button.addEventListener("click", () => {
    mode = button.dataset.mode;
    document.querySelectorAll("nav button").forEach((b) => b.setAttribute("aria-pressed", b === button));
    document.querySelectorAll("label[data-for]").forEach((label) => {
      label.classList.toggle("hidden", label.dataset.for !== mode);
    });
  });
});

form.addEventListener("submit", async (event) => {
  event.preventDefault();
  const data = new FormData(form);
  const body = { sheetId: data.get("sheetId"), sheetName: data.get("sheetName") };
  if (mode === "search") {
    body.rowValue = data.get("rowValue");
    body.columnValue = data.get("columnValue");
  } else if (mode === "getrow") {
    body.columnName = data.get("columnName");
  } else {
    body.reset = data.get("reset") === "on";
  }
  result.textContent = "Loading...";
  try {
    const response = await fetch("/api/" + mode, {
      method: "POST",
      headers: { "Content-Type": "application/json" },
      body: JSON.stringify(body),
    });
    const json = await response.json();
    result.textContent = response.status + "\\n" + JSON.stringify(json, null, 2);
  } catch (error) {
    result.textContent = "Request failed: " + error;
  }
});
</script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index():
    return HTMLResponse(PAGE)
